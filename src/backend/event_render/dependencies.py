import uuid
from functools import lru_cache
from typing import Optional

import google.genai as genai
from fastapi import Depends, HTTPException, Request

from event_render.config import settings
from event_render.services import RenderService
from event_render import session_store
from event_render.session_store import SceneSession


def get_scene_session(request: Request) -> SceneSession:
    session_id = request.session.get('sid')
    if not session_id:
        session_id = uuid.uuid4().hex
        request.session['sid'] = session_id
    return session_store.get_session(session_id)


@lru_cache()
def get_genai_client(api_key: Optional[str] = None):
    if settings.USE_VERTEXAI:
        return genai.Client(vertexai=True, project=settings.PROJECT_ID, location=settings.LOCATION)
    return genai.Client(api_key=api_key or settings.GEMINI_API_KEY)


def get_render_service(session: SceneSession = Depends(get_scene_session)) -> RenderService:
    if not session.has_api_key():
        raise HTTPException(status_code=401, detail="Por favor, selecciona tu clave API antes de continuar.")
    return RenderService(get_genai_client(session.api_key))
