"""
Polling document watcher.

Editors and sync tools rewrite the Markdown file behind the server's back.
A daemon thread checks the file's mtime every POLL_INTERVAL seconds and
reloads the in-memory buffer when it changed, unless the buffer holds
unsaved edits.
"""

import logging
import os
import threading
from typing import Optional

from mdtasks.document import MarkdownDocument

log = logging.getLogger(__name__)

# Default polling interval in seconds (configurable via POLL_INTERVAL env var)
_DEFAULT_POLL_INTERVAL = 2.0


class DocumentWatcher:
    """
    Polling-based watcher for a single document.

    Usage:
        watcher = DocumentWatcher(document)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        document: MarkdownDocument,
        poll_interval: Optional[float] = None,
    ) -> None:
        self._document = document
        self._poll_interval = poll_interval or float(
            os.environ.get("POLL_INTERVAL", _DEFAULT_POLL_INTERVAL)
        )
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the polling thread (daemon)."""
        log.info(
            "Watching %s (polling every %.1fs)", self._document.path, self._poll_interval
        )
        self._thread = threading.Thread(
            target=self._poll_loop, daemon=True, name="document-watcher"
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the poll thread to stop and wait for it."""
        log.info("Stopping document watcher")
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=self._poll_interval + 2)

    def check_now(self) -> bool:
        """Run one poll cycle synchronously. Returns True if the document reloaded."""
        reloaded = self._document.reload_if_clean()
        if reloaded:
            log.debug("Change detected in %s", self._document.path)
        return reloaded

    def _poll_loop(self) -> None:
        """Main polling loop; runs until stop_event is set."""
        while not self._stop_event.is_set():
            self._stop_event.wait(self._poll_interval)
            if self._stop_event.is_set():
                break
            try:
                self.check_now()
            except Exception:
                log.exception("Error during poll cycle")
