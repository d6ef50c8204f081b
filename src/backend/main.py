import os
import uvicorn
import logging
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import FileResponse

from event_render.config import settings
from event_render.dependencies import get_scene_session
from event_render.schemas import ApiKeySelection, ApiKeyStatus
from event_render.session_store import SceneSession
from event_render.routers.scene import router as scene_router
from event_render.routers.lighting import router as lighting_router
from event_render.routers.renders import router as renders_router


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# ==============================================================================
# 1. FASTAPI APP AND MIDDLEWARE SETUP
# ==============================================================================

app = FastAPI(title="Event Render AI")

SECRET_KEY = os.environ.get('SECRET_KEY', 'a-very-secret-key-for-dev')
app.add_middleware(SessionMiddleware, secret_key=SECRET_KEY, max_age=settings.SESSION_MAX_AGE)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==============================================================================
# 2. API KEY SELECTION
# ==============================================================================

@app.get('/api/key/status', response_model=ApiKeyStatus, tags=["API Key"])
def api_key_status(session: SceneSession = Depends(get_scene_session)):
    return ApiKeyStatus(has_api_key=session.has_api_key(), can_select_key=settings.ALLOW_KEY_SELECTION)


@app.post('/api/key', response_model=ApiKeyStatus, tags=["API Key"])
def select_api_key(selection: ApiKeySelection, session: SceneSession = Depends(get_scene_session)):
    if not settings.ALLOW_KEY_SELECTION:
        raise HTTPException(
            status_code=400,
            detail="API key selection is not available. Please ensure GEMINI_API_KEY is set in your environment."
        )
    if not selection.api_key.strip():
        raise HTTPException(status_code=400, detail="API key must not be empty.")
    session.select_api_key(selection.api_key.strip())
    logger.info(f"API key selected for session {session.session_id}.")
    return ApiKeyStatus(has_api_key=session.has_api_key(), can_select_key=settings.ALLOW_KEY_SELECTION)


app.include_router(scene_router, prefix="/api/scene", tags=["Scene"])
app.include_router(lighting_router, prefix="/api/lighting", tags=["Lighting"])
app.include_router(renders_router, prefix="/api/renders", tags=["Renders"])


# ==============================================================================
# 3. APP ROUTING AND STARTUP
# ==============================================================================
# The browser bundle is optional; without it the service is API only.
STATIC_DIR = Path(os.environ.get("STATIC_DIR", "static"))

if STATIC_DIR.is_dir():
    @app.middleware("http")
    async def catch_all_middleware(request: Request, call_next):
        response = await call_next(request)
        if response.status_code == 404 and not request.url.path.startswith('/api/') and '.' not in request.url.path:
            return FileResponse(STATIC_DIR / "index.html")
        return response

    app.mount("/", StaticFiles(directory=STATIC_DIR, html=True), name="app")


if __name__ == '__main__':
    port = int(os.getenv("PORT", "7860"))
    logger.info(f"Starting Uvicorn server on http://0.0.0.0:{port}")
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
