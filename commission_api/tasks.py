# commission_api/tasks.py
"""
Fire-and-forget recalculation work.

Request handlers submit tasks after their own commit and return right
away. Modes (config RECALC_MODE):
  thread  -> a daemon worker thread runs tasks in its own app context
  manual  -> tasks wait in the queue until drain() is called (tests, CLI)

Every outcome is kept in ``results`` so failures stay observable.
"""
from __future__ import annotations

import logging
import queue
import threading
from collections import deque
from typing import Any, Callable, List, NamedTuple, Optional

from flask import current_app, has_app_context

log = logging.getLogger(__name__)

MODE_THREAD = "thread"
MODE_MANUAL = "manual"
RECALC_MODES = (MODE_THREAD, MODE_MANUAL)

class TaskResult(NamedTuple):
    name: str
    ok: bool
    error: Optional[str] = None
    value: Any = None

class _Task(NamedTuple):
    name: str
    fn: Callable
    args: tuple
    kwargs: dict

class RecalcQueue:
    def __init__(self, app=None, history: int = 500):
        self.app = None
        self.mode = MODE_THREAD
        self.results = deque(maxlen=history)
        self._q: "queue.Queue[Optional[_Task]]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        mode = (app.config.get("RECALC_MODE") or MODE_THREAD).lower()
        if mode not in RECALC_MODES:
            raise ValueError(f"RECALC_MODE must be one of {RECALC_MODES}, got {mode!r}")
        self.app = app
        self.mode = mode
        app.extensions["recalc_queue"] = self

    # ---- producer side ----
    def submit(self, name: str, fn: Callable, *args, **kwargs):
        self._q.put(_Task(name, fn, args, kwargs))
        log.debug("queued task %s (mode=%s)", name, self.mode)
        if self.mode == MODE_THREAD:
            self.start()

    def pending(self) -> int:
        return self._q.qsize()

    def failures(self) -> List[TaskResult]:
        return [r for r in self.results if not r.ok]

    # ---- consumer side ----
    def _run(self, task: _Task) -> TaskResult:
        from commission_api.extensions import db
        try:
            value = task.fn(*task.args, **task.kwargs)
            result = TaskResult(task.name, True, value=value)
        except Exception as e:
            db.session.rollback()
            log.exception("background task %s failed", task.name)
            result = TaskResult(task.name, False, error=str(e))
        self.results.append(result)
        return result

    def drain(self) -> List[TaskResult]:
        """Run everything queued so far in the calling thread."""
        done = []
        while True:
            try:
                task = self._q.get_nowait()
            except queue.Empty:
                break
            if task is None:
                self._q.task_done()
                continue
            try:
                if has_app_context():
                    done.append(self._run(task))
                else:
                    with self.app.app_context():
                        done.append(self._run(task))
            finally:
                self._q.task_done()
        return done

    def _worker(self):
        while True:
            task = self._q.get()
            try:
                if task is None:
                    return
                with self.app.app_context():
                    self._run(task)
            finally:
                self._q.task_done()

    def start(self):
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._thread = threading.Thread(target=self._worker, name="recalc-worker", daemon=True)
            self._thread.start()
            log.info("recalc worker started")

    def join(self):
        """Block until every queued task has been processed."""
        if self.mode == MODE_MANUAL:
            self.drain()
        else:
            self._q.join()

    def stop(self, timeout: float = 5.0):
        with self._lock:
            t = self._thread
            self._thread = None
        if t is None:
            return
        self._q.put(None)
        t.join(timeout)
        log.info("recalc worker stopped")


def get_queue() -> RecalcQueue:
    return current_app.extensions["recalc_queue"]
