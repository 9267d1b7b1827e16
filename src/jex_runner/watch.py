from __future__ import annotations

import os
import queue
import threading
import time
from pathlib import Path
from typing import Callable, Iterable, Protocol

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

DEFAULT_DEBOUNCE_MS = 300
DEFAULT_SETTLE_MS = 100


class Subscription(Protocol):
    def close(self) -> None:
        """Stop delivering change events.

        Example:
            ```python
            subscription.close()
            ```
        """
        ...


ChangeCallback = Callable[[str], object]
Subscriber = Callable[[Path, ChangeCallback], Subscription]


def _normalize(path: str | os.PathLike[str] | bytes) -> str:
    """Return an absolute, normalized string path for comparisons.

    Example:
        ```python
        key = _normalize("./t.jex")
        ```
    """
    return os.path.normpath(os.path.abspath(os.fsdecode(path)))


def watched_paths(
    script_path: str | Path,
    input_path: str | Path | None = None,
    meta_path: str | Path | None = None,
) -> frozenset[str]:
    """Compute the watched set: the script plus companions that exist now.

    Example:
        ```python
        paths = watched_paths("t.jex", "t.input.json", None)
        ```
    """
    paths = {_normalize(script_path)}
    for candidate in (input_path, meta_path):
        if candidate is not None and Path(candidate).is_file():
            paths.add(_normalize(candidate))
    return frozenset(paths)


class _ChangeHandler(FileSystemEventHandler):
    """Forward last-write events for files to a callback.

    Example:
        ```python
        handler = _ChangeHandler(print)
        ```
    """

    def __init__(self, callback: ChangeCallback) -> None:
        """Store the callback receiving changed file paths.

        Example:
            ```python
            handler = _ChangeHandler(scheduler.offer)
            ```
        """
        super().__init__()
        self._callback = callback

    def on_modified(self, event: FileSystemEvent) -> None:
        """Forward a file modification.

        Example:
            ```python
            handler.on_modified(FileModifiedEvent("/tmp/t.jex"))
            ```
        """
        if not event.is_directory:
            self._callback(os.fsdecode(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        """Forward the destination of a rename, as written by save-via-rename editors.

        Example:
            ```python
            handler.on_moved(FileMovedEvent("/tmp/.t.jex.swp", "/tmp/t.jex"))
            ```
        """
        if not event.is_directory and event.dest_path:
            self._callback(os.fsdecode(event.dest_path))


class DirectorySubscription:
    """Watchdog observer on one directory, delivering file change paths.

    Example:
        ```python
        sub = DirectorySubscription(Path("/tmp"), print)
        sub.close()
        ```
    """

    def __init__(self, directory: Path, callback: ChangeCallback) -> None:
        """Start a non-recursive observer on `directory`.

        Example:
            ```python
            sub = DirectorySubscription(Path("."), scheduler.offer)
            ```
        """
        self._observer = Observer()
        self._observer.schedule(_ChangeHandler(callback), str(directory), recursive=False)
        self._observer.daemon = True
        self._observer.start()

    def close(self) -> None:
        """Stop the observer thread and wait for it to exit.

        Example:
            ```python
            sub.close()
            ```
        """
        self._observer.stop()
        self._observer.join(timeout=5)


def subscribe_directory(directory: Path, callback: ChangeCallback) -> Subscription:
    """Subscribe `callback` to last-write events in `directory`.

    Example:
        ```python
        subscription = subscribe_directory(Path("/data"), scheduler.offer)
        ```
    """
    return DirectorySubscription(directory, callback)


class WatchScheduler:
    """Debounce change events and run a callback for each accepted trigger.

    Triggers are accepted on the notification thread and processed one at a
    time on the thread calling `run_forever`, so runs never overlap and each
    run's output is complete before the next one starts.

    Example:
        ```python
        scheduler = WatchScheduler(watched_paths("t.jex"), on_run=lambda trigger: None)
        scheduler.run_forever(subscribe_directory)
        ```
    """

    def __init__(
        self,
        paths: Iterable[str | Path],
        on_run: Callable[[str | None], object],
        *,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        settle_ms: int = DEFAULT_SETTLE_MS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], object] = time.sleep,
    ) -> None:
        """Capture the watched set and timing policy.

        Example:
            ```python
            scheduler = WatchScheduler({"/tmp/t.jex"}, on_run=print, debounce_ms=300)
            ```
        """
        self._paths = frozenset(_normalize(path) for path in paths)
        if not self._paths:
            raise ValueError("WatchScheduler requires at least one path to watch")
        self._on_run = on_run
        self._debounce_seconds = debounce_ms / 1000
        self._settle_seconds = settle_ms / 1000
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_accepted: float | None = None
        self._pending: queue.Queue[str] = queue.Queue()

    @property
    def paths(self) -> frozenset[str]:
        """Return the absolute paths being watched.

        Example:
            ```python
            assert "/tmp/t.jex" in scheduler.paths
            ```
        """
        return self._paths

    @property
    def pending(self) -> int:
        """Return the number of accepted triggers not yet processed.

        Example:
            ```python
            waiting = scheduler.pending
            ```
        """
        return self._pending.qsize()

    def offer(self, path: str | os.PathLike[str]) -> bool:
        """Consider a change event; return True if it was accepted as a trigger.

        Example:
            ```python
            accepted = scheduler.offer("/tmp/t.jex")
            ```
        """
        changed = _normalize(path)
        if changed not in self._paths:
            return False
        with self._lock:
            now = self._clock()
            if self._last_accepted is not None and now - self._last_accepted < self._debounce_seconds:
                return False
            self._last_accepted = now
        self._pending.put(changed)
        return True

    def run_pending(self) -> int:
        """Process every queued trigger without blocking; return how many ran.

        Example:
            ```python
            ran = scheduler.run_pending()
            ```
        """
        ran = 0
        while True:
            try:
                trigger = self._pending.get_nowait()
            except queue.Empty:
                return ran
            self._run(trigger)
            ran += 1

    def run_forever(self, subscribe: Subscriber = subscribe_directory) -> None:
        """Run once, then re-run on accepted changes until interrupted.

        Subscriptions are opened before the initial run so a save made while
        it executes is queued rather than lost.

        Example:
            ```python
            try:
                scheduler.run_forever()
            except KeyboardInterrupt:
                pass
            ```
        """
        directories = sorted({str(Path(path).parent) for path in self._paths})
        subscriptions = [subscribe(Path(directory), self.offer) for directory in directories]
        try:
            self._on_run(None)
            while True:
                self._run(self._pending.get())
        finally:
            for subscription in subscriptions:
                subscription.close()

    def _run(self, trigger: str) -> None:
        """Wait for the settle delay, then invoke the run callback.

        Example:
            ```python
            scheduler._run("/tmp/t.jex")
            ```
        """
        if self._settle_seconds:
            self._sleep(self._settle_seconds)
        self._on_run(trigger)
