from fastapi import APIRouter, Depends, HTTPException
from starlette.responses import Response
import logging

from event_render.dependencies import get_render_service, get_scene_session
from event_render.encoding import data_url_to_bytes
from event_render.exceptions import SESSION_BUSY_MESSAGE, ImageReadError
from event_render.schemas import Activity, RenderResult, TaskResponse, TaskStatus
from event_render.services import RenderService
from event_render.session_store import SceneSession, begin_activity, end_activity
from event_render.task_manager import create_task, get_task_status

router = APIRouter()
logger = logging.getLogger(__name__)

RENDER_FILENAME = "event_render.png"


def _set_progress(session: SceneSession, message: str):
    session.progress = message


def _on_render_finished(session: SceneSession, result: RenderResult):
    session.render = result
    if result.error:
        session.progress = f"Generación fallida: {result.error}"
        if result.invalid_api_key:
            session.invalidate_api_key()
    else:
        session.progress = "Generación completada."
    end_activity(session)


def _on_render_crashed(session: SceneSession, error: Exception):
    session.render = RenderResult(
        error=f"Fallo general al generar el render: {error}. Por favor, inténtalo de nuevo."
    )
    session.progress = ""
    end_activity(session)


@router.post("", response_model=TaskResponse)
async def generate_render(
    session: SceneSession = Depends(get_scene_session),
    render_service: RenderService = Depends(get_render_service)
):
    if not session.scene_image:
        raise HTTPException(status_code=400, detail="Por favor, sube una imagen de SketchUp.")
    if not session.scene_description.strip():
        raise HTTPException(status_code=400, detail="Por favor, detecta o describe los elementos de la escena.")
    if not begin_activity(session, Activity.GENERATING):
        raise HTTPException(status_code=409, detail=SESSION_BUSY_MESSAGE)

    session.render = None
    session.progress = "Iniciando generación..."
    logger.info(f"Submitting render task for session {session.session_id} "
                f"with {len(session.reference_images)} reference image(s).")

    task_id = create_task(
        render_service.generate_single_render,
        on_success=lambda result, **kwargs: _on_render_finished(session, result),
        on_error=lambda e, **kwargs: _on_render_crashed(session, e),
        progress_listener=lambda message: _set_progress(session, message),
        track_progress=True,
        sketchup_image=session.scene_image,
        scene_description=session.scene_description,
        reference_images=list(session.reference_images),
        lighting=session.lighting,
    )
    logger.info(f"Task {task_id} created for render generation.")
    return TaskResponse(task_id=task_id)


@router.get("/tasks/{task_id}", response_model=TaskStatus)
def get_render_task(task_id: str):
    status = get_task_status(task_id)
    if status["status"] == "not_found":
        raise HTTPException(status_code=404, detail="Task not found.")
    return TaskStatus(**status)


@router.get("/download")
def download_render(session: SceneSession = Depends(get_scene_session)):
    if not session.render or not session.render.url:
        raise HTTPException(status_code=404, detail="No hay ningún render para descargar.")
    try:
        content, mime_type = data_url_to_bytes(session.render.url)
    except ImageReadError as e:
        logger.error(f"Stored render is not a valid data URL: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    return Response(
        content=content,
        media_type=mime_type,
        headers={"Content-Disposition": f'attachment; filename="{RENDER_FILENAME}"'},
    )
