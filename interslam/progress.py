"""Progress reporting and a background task runner that reports progress."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable


class ProgressInterface:
    """Receiver of progress updates; every method does nothing by default."""

    def set_title(self, title: str) -> None:
        pass

    def set_text(self, text: str) -> None:
        pass

    def set_maximum(self, maximum: int) -> None:
        pass

    def set_current(self, current: int) -> None:
        pass

    def increment(self) -> None:
        pass


@dataclass(frozen=True)
class ProgressStatus:
    title: str
    text: str
    current: int
    maximum: int
    running: bool


_NO_RESULT = object()


class ProgressTask(ProgressInterface):
    """Runs one named task at a time on a worker thread and tracks its progress."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._title = ""
        self._text = ""
        self._maximum = 0
        self._current = 0
        self._running = False
        self._task_name = ""
        self._thread: threading.Thread | None = None
        self._result: Any = _NO_RESULT
        self._error: BaseException | None = None

    def set_title(self, title: str) -> None:
        with self._lock:
            self._title = title

    def set_text(self, text: str) -> None:
        with self._lock:
            self._text = text

    def set_maximum(self, maximum: int) -> None:
        with self._lock:
            self._maximum = maximum

    def set_current(self, current: int) -> None:
        with self._lock:
            self._current = current

    def increment(self) -> None:
        with self._lock:
            self._current += 1

    def start(self, task_name: str, task: Callable[[ProgressInterface], Any]) -> None:
        """Start ``task`` in the background; it receives this object for reporting."""
        with self._lock:
            if self._running:
                raise RuntimeError(f"task {self._task_name!r} is still running")
            self._task_name = task_name
            self._title = ""
            self._text = ""
            self._current = 0
            self._result = _NO_RESULT
            self._error = None
            self._running = True

        def worker() -> None:
            try:
                outcome = task(self)
            except BaseException as exc:  # handed back to the caller by result()
                with self._lock:
                    self._error = exc
                    self._running = False
                return
            with self._lock:
                self._result = outcome
                self._running = False

        self._thread = threading.Thread(target=worker, name=f"{self.name}:{task_name}", daemon=True)
        self._thread.start()

    def poll(self, task_name: str) -> bool:
        """True exactly once, when the task named ``task_name`` has finished."""
        if task_name != self._task_name or self._thread is None:
            return False
        with self._lock:
            if self._running:
                return False
        self._thread.join()
        self._thread = None
        return True

    def result(self) -> Any:
        """Hand over the finished task's result, re-raising its exception if it failed."""
        with self._lock:
            error, self._error = self._error, None
            result, self._result = self._result, _NO_RESULT
        if error is not None:
            raise error
        if result is _NO_RESULT:
            raise LookupError("no task result is available")
        return result

    def fraction(self) -> float:
        """Completed share of the work, or 0.0 when no maximum is set."""
        with self._lock:
            if self._maximum <= 0:
                return 0.0
            return self._current / float(self._maximum)

    def status(self) -> ProgressStatus:
        with self._lock:
            return ProgressStatus(self._title, self._text, self._current, self._maximum, self._running)