"""File watcher service using watchfiles.

Monitors the document directories of a project and emits one debounced
``FileChangeEvent`` per markdown path once the path has been quiet for the
debounce interval.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from watchfiles import Change, awatch

from specdash import config
from specdash.models import ChangeKind, FileChangeEvent
from specdash.paths import feature_id_from_path, normalize_path

logger = logging.getLogger("specdash.watcher")

Subscriber = Callable[[FileChangeEvent], Any]

_CHANGE_KINDS: dict[Change, ChangeKind] = {
    Change.added: "add",
    Change.modified: "change",
    Change.deleted: "unlink",
}


class FileWatcher:
    """Background watcher with per-path debounce.

    Every raw change cancels the path's pending timer and arms a new one,
    so a burst of saves produces a single event carrying the last kind seen.
    """

    def __init__(self, debounce_ms: int = config.WATCH_DEBOUNCE_MS):
        self.debounce_ms = debounce_ms
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._running = False
        self._roots: list[Path] = []
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._subscribers: list[Subscriber] = []
        self._callbacks: set[asyncio.Task] = set()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a plain or async callable. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    async def start(self, roots: Iterable[str | Path]) -> None:
        """Start watching ``roots`` in a background task, replacing any prior session."""
        if self._running or self._timers:
            await self.stop()

        self._roots = [Path(r) for r in roots if Path(r).exists()]
        if not self._roots:
            logger.warning("No watch paths exist, watcher has nothing to monitor")
            return

        self._running = True
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._watch_loop(self._roots, self._stop_event))
        logger.info(f"File watcher started for {[str(p) for p in self._roots]}")

    async def stop(self) -> None:
        """Stop watching. Pending timers and running callbacks are cancelled."""
        self._running = False
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

        callbacks = list(self._callbacks)
        for task in callbacks:
            task.cancel()
        if callbacks:
            await asyncio.gather(*callbacks, return_exceptions=True)
        self._callbacks.clear()

        if self._stop_event:
            self._stop_event.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._stop_event = None
        logger.info("File watcher stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pending_paths(self) -> list[str]:
        return list(self._timers)

    async def _watch_loop(self, roots: list[Path], stop_event: asyncio.Event) -> None:
        logger.info(f"Watching {len(roots)} directories: {[str(p) for p in roots]}")
        try:
            async for changes in awatch(*roots, stop_event=stop_event):
                if not self._running:
                    break
                for change_type, path_str in changes:
                    kind = _CHANGE_KINDS.get(change_type)
                    if kind:
                        self.handle_change(kind, path_str)
        except asyncio.CancelledError:
            logger.info("File watcher task cancelled")
            raise
        except Exception as e:
            logger.error(f"File watcher error: {e}")
        finally:
            self._running = False

    def handle_change(self, kind: ChangeKind, path: str | Path) -> None:
        """Record one raw change and (re)arm the path's debounce timer."""
        normalized = normalize_path(path)
        if not normalized.endswith(config.DOC_EXTENSION):
            return

        loop = asyncio.get_running_loop()
        previous = self._timers.pop(normalized, None)
        if previous is not None:
            previous.cancel()
        self._timers[normalized] = loop.call_later(
            self.debounce_ms / 1000, self._fire, kind, normalized
        )

    def _fire(self, kind: ChangeKind, path: str) -> None:
        self._timers.pop(path, None)
        event = FileChangeEvent(eventKind=kind, path=path, featureId=feature_id_from_path(path))
        logger.debug(f"File {kind}: {path}")
        for callback in list(self._subscribers):
            try:
                result = callback(event)
            except Exception as e:
                logger.error(f"File change subscriber failed for {path}: {e}")
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._callbacks.add(task)
                task.add_done_callback(self._on_callback_done)

    def _on_callback_done(self, task: asyncio.Task) -> None:
        self._callbacks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"File change subscriber failed: {error}")
