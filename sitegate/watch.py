"""Watch mode: reformat documents as they are saved."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from sitegate.config.models import SitegateConfig
from sitegate.documents.discovery import _matches_any, detect_format, load_document
from sitegate.errors import MalformedDocumentError
from sitegate.formatter import Formatter

logger = logging.getLogger(__name__)


class _DebouncedHandler(FileSystemEventHandler):
    """Buffers rapid filesystem events and reformats after a quiet period.

    Each event for a path restarts that path's timer, so only the last
    write in a burst is formatted. A zero debounce reformats immediately.
    """

    def __init__(
        self,
        root: Path,
        config: SitegateConfig,
        lock: threading.Lock,
        callback: Callable[[str, str], None] | None = None,
    ) -> None:
        super().__init__()
        self._root = root
        self._config = config
        self._formatter = Formatter(config.formatter)
        self._debounce = config.watch.debounce_seconds
        self._ignore = set(config.source.ignore_patterns)
        self._lock = lock
        self._callback = callback
        self._timers: dict[str, threading.Timer] = {}
        self._timers_lock = threading.Lock()

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in ("created", "modified", "moved"):
            return
        src = getattr(event, "dest_path", "") or event.src_path
        if isinstance(src, bytes):
            src = src.decode()

        try:
            rel = Path(src).resolve().relative_to(self._root)
        except ValueError:
            return
        if _matches_any(rel, self._ignore):
            return
        fmt = detect_format(rel, self._config.source.extensions)
        if fmt is None:
            return

        rel_path = rel.as_posix()
        if self._debounce <= 0:
            self._fire(rel_path)
            return

        with self._timers_lock:
            pending = self._timers.get(rel_path)
            if pending is not None:
                pending.cancel()
            timer = threading.Timer(self._debounce, self._fire, args=(rel_path,))
            timer.daemon = True
            self._timers[rel_path] = timer
            timer.start()

    @property
    def pending(self) -> int:
        """Number of paths waiting for their quiet period to end."""
        with self._timers_lock:
            return len(self._timers)

    def cancel_pending(self) -> None:
        with self._timers_lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()

    def _fire(self, rel_path: str) -> None:
        with self._timers_lock:
            self._timers.pop(rel_path, None)

        with self._lock:
            outcome = self.reformat(rel_path)

        if self._callback is not None:
            try:
                self._callback(outcome, rel_path)
            except Exception:
                logger.exception("Watcher callback failed for %s", rel_path)

    def reformat(self, rel_path: str) -> str:
        """Reformat one document. Returns "formatted", "unchanged" or "failed".

        A document already in canonical form is never rewritten, so the
        write below doesn't trigger another round.
        """
        try:
            doc = load_document(self._root, rel_path, extensions=self._config.source.extensions)
            formatted = self._formatter.format_document(doc)
        except MalformedDocumentError as e:
            logger.warning("not formatting %s", e)
            return "failed"
        except OSError as e:
            logger.warning("cannot read %s: %s", rel_path, e)
            return "failed"

        if formatted.content == doc.content:
            return "unchanged"
        try:
            (self._root / rel_path).write_bytes(formatted.content.encode("utf-8"))
        except OSError as e:
            logger.warning("cannot write %s: %s", rel_path, e)
            return "failed"
        logger.info("formatted %s", rel_path)
        return "formatted"


class FormatWatcher:
    """Watches a site root and reformats documents on save.

    Uses watchdog with a debounce window to avoid duplicate events from
    editor save patterns (temp file + rename).
    """

    def __init__(
        self,
        root: Path,
        config: SitegateConfig | None = None,
        callback: Callable[[str, str], None] | None = None,
    ) -> None:
        self._root = Path(root).resolve()
        self._config = config or SitegateConfig()
        self._lock = threading.Lock()
        self._observer: Observer | None = None
        self._handler = _DebouncedHandler(
            root=self._root,
            config=self._config,
            lock=self._lock,
            callback=callback,
        )

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Begin watching the site root recursively."""
        if self._observer is not None:
            return
        self._observer = Observer()
        self._observer.schedule(self._handler, str(self._root), recursive=True)
        self._observer.start()
        logger.info("Watching %s for changes", self._root)

    def stop(self) -> None:
        """Stop watching and clean up."""
        if self._observer is None:
            return
        self._observer.stop()
        self._handler.cancel_pending()
        self._observer.join(timeout=5)
        self._observer = None
        logger.info("Stopped watching %s", self._root)
