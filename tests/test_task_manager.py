import threading
import time
from unittest.mock import Mock

from event_render import task_manager
from event_render.config import settings


def wait_until_done(task_id, timeout=5.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        status = task_manager.get_task_status(task_id)
        if status["status"] != "running":
            return status
        time.sleep(0.01)
    raise AssertionError("task did not finish")


def test_task_records_progress_in_order():
    listener = Mock()
    on_success = Mock()

    def work(value, on_progress):
        on_progress("first")
        on_progress("second")
        return {"value": value}

    task_id = task_manager.create_task(
        work, on_success=on_success, progress_listener=listener, track_progress=True, value=42
    )
    status = wait_until_done(task_id)

    assert status["status"] == "completed"
    assert status["progress"] == ["first", "second"]
    assert status["result"] == {"value": 42}
    assert [c.args[0] for c in listener.call_args_list] == ["first", "second"]
    on_success.assert_called_once_with({"value": 42}, value=42)


def test_task_exception_marks_failure():
    on_error = Mock()

    def work():
        raise ValueError("bad input")

    task_id = task_manager.create_task(work, on_error=on_error)
    status = wait_until_done(task_id)

    assert status["status"] == "failed"
    assert status["error"] == "bad input"
    on_error.assert_called_once()


def test_unknown_task_is_not_found():
    assert task_manager.get_task_status("missing") == {"status": "not_found"}


def test_finished_task_is_dropped_after_retention():
    task_id = task_manager.create_task(lambda: {"url": "data:image/png;base64,AA=="})
    assert wait_until_done(task_id)["status"] == "completed"
    assert "finished_at" not in task_manager.get_task_status(task_id)

    task_manager._task_store[task_id]["finished_at"] -= settings.TASK_RETENTION_SECONDS + 1

    assert task_manager.get_task_status(task_id) == {"status": "not_found"}


def test_running_task_is_never_dropped(monkeypatch):
    release = threading.Event()
    task_id = task_manager.create_task(lambda: release.wait(timeout=5))
    monkeypatch.setattr(settings, "TASK_RETENTION_SECONDS", 0)
    try:
        assert task_manager.get_task_status(task_id)["status"] == "running"
    finally:
        release.set()
