import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Any, Callable, Optional
import logging

from pydantic import BaseModel

from event_render.config import settings

logger = logging.getLogger(__name__)

# ==============================================================================
# 1. In-Memory Task Store
# ==============================================================================

_task_store: Dict[str, Dict[str, Any]] = {}
_executor = ThreadPoolExecutor(max_workers=settings.TASK_WORKERS)

# ==============================================================================
# 2. Task Management Functions
# ==============================================================================

def _expire_tasks():
    """Drops finished task records once the retention window has passed."""
    cutoff = time.time() - settings.TASK_RETENTION_SECONDS
    expired = [task_id for task_id, task in list(_task_store.items())
               if task.get("finished_at") and task["finished_at"] < cutoff]
    for task_id in expired:
        _task_store.pop(task_id, None)
    if expired:
        logger.info(f"Expired {len(expired)} finished task(s).")


def _report_progress(task_id: str, message: str, listener: Optional[Callable[[str], None]] = None):
    logger.info(f"Task {task_id} progress: {message}")
    _task_store[task_id]["progress"].append(message)
    if listener:
        listener(message)


def create_task(
    target_func: Callable,
    on_success: Optional[Callable] = None,
    on_error: Optional[Callable] = None,
    progress_listener: Optional[Callable[[str], None]] = None,
    track_progress: bool = False,
    **kwargs
) -> str:
    """
    Submits a function to the thread pool, returning a task ID.
    When track_progress is set, the function receives an `on_progress` callback whose
    messages are kept, in order, on the task record.
    Executes on_success or on_error callbacks upon completion.
    """
    _expire_tasks()
    task_id = str(uuid.uuid4())
    logger.info(f"Creating task {task_id} for function: {target_func.__name__}")

    func_kwargs = kwargs.copy()
    if track_progress:
        func_kwargs["on_progress"] = lambda message: _report_progress(task_id, message, progress_listener)

    def task_wrapper(task_id: str):
        logger.info(f"Task {task_id} started.")
        try:
            result = target_func(**func_kwargs)
            result_data = result.model_dump() if isinstance(result, BaseModel) else result

            # A returned error is a handled failure: the task itself completed.
            if isinstance(result_data, dict) and result_data.get("error"):
                logger.warning(f"Task {task_id} completed with a handled error: {result_data['error']}")
            else:
                logger.info(f"Task {task_id} completed successfully.")

            if on_success:
                try:
                    on_success(result, **kwargs)
                except Exception as cb_e:
                    logger.error(f"Error in on_success callback for task {task_id}: {cb_e}", exc_info=True)
            _task_store[task_id].update({"status": "completed", "result": result_data, "finished_at": time.time()})

        except Exception as e:
            logger.error(f"Task {task_id} failed with an unhandled exception: {e}", exc_info=True)
            if on_error:
                try:
                    on_error(e, **kwargs)
                except Exception as cb_e:
                    logger.error(f"Error in on_error callback for task {task_id}: {cb_e}", exc_info=True)
            _task_store[task_id].update({"status": "failed", "error": str(e), "finished_at": time.time()})

    _task_store[task_id] = {"status": "running", "progress": []}
    _executor.submit(task_wrapper, task_id)
    logger.info(f"Task {task_id} is now running.")

    return task_id


def get_task_status(task_id: str) -> Dict[str, Any]:
    """
    Retrieves a snapshot of the status of a task from the in-memory store.
    """
    _expire_tasks()
    task = _task_store.get(task_id)
    if task is None:
        return {"status": "not_found"}
    snapshot = dict(task)
    snapshot["progress"] = list(task["progress"])
    snapshot.pop("finished_at", None)
    return snapshot
