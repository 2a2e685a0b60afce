from __future__ import annotations

from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal


class _TaskSignals(QObject):
    finished = Signal(object)
    failed = Signal(str)


class BackgroundTask(QRunnable):
    """Runs fn(*args, **kwargs) on the global thread pool and reports back via signals."""

    def __init__(self, fn: Callable[..., Any], *args: Any, **kwargs: Any):
        super().__init__()
        self.signals = _TaskSignals()
        self._fn = fn
        self._args = args
        self._kwargs = kwargs

    def run(self) -> None:
        try:
            result = self._fn(*self._args, **self._kwargs)
        except Exception as exc:
            self.signals.failed.emit(str(exc))
            return
        self.signals.finished.emit(result)


def start_task(
    fn: Callable[..., Any],
    *args: Any,
    on_finished: Optional[Callable[[object], None]] = None,
    on_failed: Optional[Callable[[str], None]] = None,
    **kwargs: Any,
) -> BackgroundTask:
    task = BackgroundTask(fn, *args, **kwargs)
    if on_finished is not None:
        task.signals.finished.connect(on_finished)
    if on_failed is not None:
        task.signals.failed.connect(on_failed)
    QThreadPool.globalInstance().start(task)
    return task
