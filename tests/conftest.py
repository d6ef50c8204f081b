"""Shared fixtures: Pillow-made images and a stand-in for the google-genai client."""

import time
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from google.genai import types
from PIL import Image

from event_render import dependencies
from event_render.dependencies import get_render_service
from event_render.encoding import encode_image_bytes
from event_render.services import RenderService
from main import app


def make_png(width=8, height=6, color=(200, 180, 150)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def text_response(text: str) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=[types.Part(text=text)]))]
    )


def image_response(data: bytes, mime_type: str = "image/png", text: str = None) -> types.GenerateContentResponse:
    parts = []
    if text:
        parts.append(types.Part(text=text))
    parts.append(types.Part(inline_data=types.Blob(data=data, mime_type=mime_type)))
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=parts))]
    )


class FakeModels:
    def __init__(self):
        self.responses = []
        self.calls = []
        self.gate = None

    def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.gate is not None and not self.gate.wait(timeout=5):
            raise AssertionError("Gate was never opened")
        if not self.responses:
            raise AssertionError("Unexpected call to generate_content")
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeGenaiClient:
    """Mimics `client.models.generate_content`, replaying queued responses or errors."""

    def __init__(self, *responses):
        self.models = FakeModels()
        self.queue(*responses)

    def queue(self, *responses):
        self.models.responses.extend(responses)

    def hold(self, gate):
        """Blocks every call until `gate` (a threading.Event) is set."""
        self.models.gate = gate

    @property
    def calls(self):
        return self.models.calls


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def scene_payload(png_bytes):
    return encode_image_bytes(png_bytes, "image/png", "scene.png")


@pytest.fixture
def fake_genai():
    return FakeGenaiClient()


@pytest.fixture
def client(fake_genai):
    app.dependency_overrides[get_render_service] = lambda: RenderService(fake_genai)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def live_client(fake_genai, monkeypatch):
    """Goes through the real credential check; only the genai client is replaced."""
    monkeypatch.setattr(dependencies, "get_genai_client", lambda api_key=None: fake_genai)
    with TestClient(app) as test_client:
        yield test_client


def wait_for_task(client, task_id, timeout=5.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        status = client.get(f"/api/renders/tasks/{task_id}").json()
        if status["status"] != "running":
            return status
        time.sleep(0.02)
    pytest.fail(f"Task {task_id} did not finish within {timeout}s")
