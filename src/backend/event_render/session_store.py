import threading
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from event_render.config import settings
from event_render.exceptions import SessionBusyError
from event_render.schemas import Activity, ImagePayload, LightingConfig, RenderResult, SceneSummary

logger = logging.getLogger(__name__)

# ==============================================================================
# 1. Scene session state
# ==============================================================================

class SceneSession(BaseModel):
    session_id: str
    scene_image: Optional[ImagePayload] = None
    scene_description: str = ""
    reference_images: List[ImagePayload] = []
    lighting: LightingConfig = Field(default_factory=LightingConfig)
    render: Optional[RenderResult] = None
    progress: str = ""
    activity: Activity = Activity.IDLE
    api_key: Optional[str] = Field(None, exclude=True)
    api_key_invalid: bool = False
    last_seen: float = Field(default_factory=time.time, exclude=True)

    def has_api_key(self) -> bool:
        if self.api_key_invalid:
            return False
        return bool(self.api_key or settings.GEMINI_API_KEY or settings.USE_VERTEXAI)

    def select_api_key(self, api_key: str):
        self.api_key = api_key
        self.api_key_invalid = False

    def invalidate_api_key(self) -> bool:
        """
        Marks the key as rejected until a new one is selected. Without key selection
        the preconfigured credential stays in use and nothing is invalidated.
        """
        if not settings.ALLOW_KEY_SELECTION:
            logger.warning(f"Preconfigured API key rejected upstream for session {self.session_id}.")
            return False
        logger.warning(f"API key rejected upstream for session {self.session_id}.")
        self.api_key_invalid = True
        return True

    def set_scene_image(self, payload: ImagePayload):
        """A new capture discards everything derived from the previous one, lighting excepted."""
        self.scene_image = payload
        self.scene_description = ""
        self.reference_images = []
        self.render = None
        self.progress = ""

    def set_description(self, description: str):
        self.scene_description = description

    def reset_scene(self):
        self.scene_image = None
        self.scene_description = ""
        self.reference_images = []
        self.render = None
        self.progress = ""

    def add_reference_images(self, payloads: List[ImagePayload]) -> Optional[str]:
        """Adds images up to the configured maximum and returns a warning when some were dropped."""
        limit = settings.MAX_REFERENCE_IMAGES
        accepted = payloads[:max(0, limit - len(self.reference_images))]
        self.reference_images = self.reference_images + accepted
        if len(payloads) > len(accepted):
            return (
                f"Solo se permiten un máximo de {limit} imágenes de referencia. "
                f"Se han añadido las primeras {len(accepted)}."
            )
        return None

    def remove_reference_image(self, index: int) -> bool:
        if index < 0 or index >= len(self.reference_images):
            return False
        self.reference_images = self.reference_images[:index] + self.reference_images[index + 1:]
        return True

    def summary(self) -> SceneSummary:
        return SceneSummary(
            has_image=self.scene_image is not None,
            image_filename=self.scene_image.filename if self.scene_image else None,
            scene_description=self.scene_description,
            reference_images=[image.filename or f"reference_{i + 1}" for i, image in enumerate(self.reference_images)],
            lighting=self.lighting,
            render=self.render,
            progress=self.progress,
            activity=self.activity,
        )


# ==============================================================================
# 2. In-memory session store
# ==============================================================================

_sessions: Dict[str, SceneSession] = {}
_lock = threading.Lock()


def _expire_sessions(now: float):
    """Drops idle sessions not seen within the session cookie lifetime. Caller holds _lock."""
    expired = [
        session_id for session_id, session in _sessions.items()
        if session.activity == Activity.IDLE and now - session.last_seen > settings.SESSION_MAX_AGE
    ]
    for session_id in expired:
        del _sessions[session_id]
    if expired:
        logger.info(f"Expired {len(expired)} scene session(s).")


def get_session(session_id: str) -> SceneSession:
    now = time.time()
    with _lock:
        _expire_sessions(now)
        session = _sessions.get(session_id)
        if session is None:
            session = SceneSession(session_id=session_id)
            _sessions[session_id] = session
            logger.info(f"Created scene session {session_id}.")
        session.last_seen = now
        return session


def begin_activity(session: SceneSession, activity: Activity) -> bool:
    """Moves an idle session into `activity`. Returns False if the session is busy."""
    with _lock:
        if session.activity != Activity.IDLE:
            return False
        session.activity = activity
        return True


def end_activity(session: SceneSession):
    with _lock:
        session.activity = Activity.IDLE


def apply_if_idle(session: SceneSession, update: Callable[[SceneSession], Any]) -> Any:
    """
    Applies `update` and returns its result, unless a detection or render is running
    for the session, in which case SessionBusyError is raised and nothing changes.
    """
    with _lock:
        if session.activity != Activity.IDLE:
            raise SessionBusyError()
        return update(session)
