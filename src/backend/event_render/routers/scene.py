from fastapi import APIRouter, Depends, HTTPException, File, UploadFile
from starlette.concurrency import run_in_threadpool
from typing import List
import logging

from event_render.dependencies import get_render_service, get_scene_session
from event_render.encoding import read_upload, read_uploads
from event_render.exceptions import (EventRenderError, ImageReadError, InvalidApiKeyError,
                                    SESSION_BUSY_MESSAGE, SessionBusyError)
from event_render.schemas import (Activity, DescriptionUpdate, DetectionResponse,
                                  ReferenceImagesResponse, SceneSummary)
from event_render.services import RenderService, billing_message
from event_render.session_store import SceneSession, apply_if_idle, begin_activity, end_activity

router = APIRouter()
logger = logging.getLogger(__name__)


def _check_image_uploads(files: List[UploadFile]):
    for file in files:
        if not file.content_type or not file.content_type.startswith("image/"):
            logger.error(f"Validation Error: Invalid file type '{file.content_type}'. Only images are allowed.")
            raise HTTPException(status_code=400, detail="Invalid file type. Only images are allowed.")


def _update_scene(session: SceneSession, update):
    try:
        return apply_if_idle(session, update)
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("", response_model=SceneSummary)
def get_scene(session: SceneSession = Depends(get_scene_session)):
    return session.summary()


@router.post("/image", response_model=SceneSummary)
async def upload_scene_image(
    file: UploadFile = File(...),
    session: SceneSession = Depends(get_scene_session)
):
    _check_image_uploads([file])
    try:
        payload = await read_upload(file)
    except ImageReadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    _update_scene(session, lambda s: s.set_scene_image(payload))
    logger.info(f"Scene image '{file.filename}' uploaded for session {session.session_id}.")
    return session.summary()


@router.delete("", response_model=SceneSummary)
def start_new_scene(session: SceneSession = Depends(get_scene_session)):
    _update_scene(session, lambda s: s.reset_scene())
    return session.summary()


@router.post("/detect", response_model=DetectionResponse)
async def detect_scene(
    session: SceneSession = Depends(get_scene_session),
    render_service: RenderService = Depends(get_render_service)
):
    if not session.scene_image:
        raise HTTPException(status_code=400, detail="Por favor, sube una imagen de SketchUp para detectar elementos.")
    if not begin_activity(session, Activity.DETECTING):
        raise HTTPException(status_code=409, detail=SESSION_BUSY_MESSAGE)

    session.scene_description = ""
    try:
        description = await run_in_threadpool(render_service.detect_scene_elements, [session.scene_image])
    except InvalidApiKeyError as e:
        logger.error(f"Error detecting scene elements: {e}", exc_info=True)
        session.invalidate_api_key()
        raise HTTPException(status_code=401, detail=billing_message(e))
    except EventRenderError as e:
        logger.error(f"Error detecting scene elements: {e}", exc_info=True)
        raise HTTPException(status_code=502, detail=f"Fallo al detectar elementos de la escena: {e}.")
    finally:
        end_activity(session)

    session.scene_description = description
    return DetectionResponse(scene_description=description)


@router.put("/description", response_model=SceneSummary)
def update_scene_description(
    update: DescriptionUpdate,
    session: SceneSession = Depends(get_scene_session)
):
    _update_scene(session, lambda s: s.set_description(update.scene_description))
    return session.summary()


@router.post("/references", response_model=ReferenceImagesResponse)
async def add_reference_images(
    files: List[UploadFile] = File(...),
    session: SceneSession = Depends(get_scene_session)
):
    _check_image_uploads(files)
    try:
        payloads = await read_uploads(files)
    except ImageReadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    warning = _update_scene(session, lambda s: s.add_reference_images(payloads))
    summary = session.summary()
    return ReferenceImagesResponse(reference_images=summary.reference_images, warning=warning)


@router.delete("/references/{index}", response_model=ReferenceImagesResponse)
def remove_reference_image(index: int, session: SceneSession = Depends(get_scene_session)):
    if not _update_scene(session, lambda s: s.remove_reference_image(index)):
        raise HTTPException(status_code=404, detail="Reference image not found.")
    return ReferenceImagesResponse(reference_images=session.summary().reference_images)
