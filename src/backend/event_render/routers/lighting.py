from fastapi import APIRouter, Depends, HTTPException, File, UploadFile
from starlette.responses import JSONResponse, Response
import logging

from event_render.config_manager import (LIGHTING_CONFIG_FILENAME, load_lighting_config,
                                         parse_lighting_config, save_lighting_config,
                                         serialize_lighting_config)
from event_render.dependencies import get_scene_session
from event_render.exceptions import InvalidLightingConfigError
from event_render.schemas import LightingConfig
from event_render.session_store import SceneSession

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=LightingConfig)
def get_lighting(session: SceneSession = Depends(get_scene_session)):
    return session.lighting


@router.put("", response_model=LightingConfig)
def update_lighting(config: LightingConfig, session: SceneSession = Depends(get_scene_session)):
    session.lighting = config
    return session.lighting


@router.get("/export")
def export_lighting(session: SceneSession = Depends(get_scene_session)):
    return Response(
        content=serialize_lighting_config(session.lighting),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{LIGHTING_CONFIG_FILENAME}"'},
    )


@router.post("/import", response_model=LightingConfig)
async def import_lighting(
    file: UploadFile = File(...),
    session: SceneSession = Depends(get_scene_session)
):
    content = await file.read()
    try:
        config = parse_lighting_config(content)
    except InvalidLightingConfigError as e:
        raise HTTPException(status_code=400, detail=f"Error al cargar la configuración de iluminación: {e}")

    session.lighting = config
    logger.info(f"Lighting configuration imported for session {session.session_id}.")
    return session.lighting


@router.post("/save")
def save_lighting(session: SceneSession = Depends(get_scene_session)):
    try:
        path = save_lighting_config(session.lighting)
    except OSError as e:
        logger.error(f"Failed to save lighting configuration: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error al guardar la configuración de iluminación.")
    return JSONResponse({"message": "Configuración de iluminación guardada.", "path": str(path)})


@router.post("/load", response_model=LightingConfig)
def load_lighting(session: SceneSession = Depends(get_scene_session)):
    try:
        config = load_lighting_config()
    except InvalidLightingConfigError as e:
        raise HTTPException(status_code=400, detail=f"Error al cargar la configuración de iluminación: {e}")

    session.lighting = config
    return session.lighting
