"""
File-backed Markdown document.

Holds the live text of one document in memory. Edits replace the buffer and
mark it dirty; save() writes it out, revert() discards it. With auto-save on,
every replace() writes through to disk immediately.

All access goes through an RLock, and edit() runs a whole
read-modify-write under it, so concurrent callers (MCP tools, REST
handlers, the watcher thread) are applied one at a time.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Union

log = logging.getLogger(__name__)


class MarkdownDocument:
    """
    In-memory buffer over a Markdown file.

    Usage:
        doc = MarkdownDocument(Path("TASKS.md"))
        doc.edit(lambda text: text + "- [ ] New\\n")
        doc.save()
    """

    def __init__(self, path: Union[str, Path], auto_save: bool = False) -> None:
        self._path = Path(path)
        self._auto_save = auto_save
        self._lock = threading.RLock()
        self._text = ""
        self._dirty = False
        self._mtime = 0.0
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def dirty(self) -> bool:
        with self._lock:
            return self._dirty

    @property
    def auto_save(self) -> bool:
        return self._auto_save

    # ------------------------------------------------------------------
    # Source / sink
    # ------------------------------------------------------------------

    def read(self) -> str:
        """Current buffer text (unsaved edits included)."""
        with self._lock:
            return self._text

    def replace(self, text: str) -> None:
        """Swap in new text. Writes through when auto-save is on."""
        with self._lock:
            if text == self._text:
                return
            self._text = text
            self._dirty = True
            if self._auto_save:
                self.save()

    def edit(self, fn: Callable[[str], str]) -> str:
        """
        Read-modify-write under the document lock.

        Exceptions raised by fn propagate and leave the buffer unchanged.
        """
        with self._lock:
            new_text = fn(self._text)
            self.replace(new_text)
            return new_text

    def save(self) -> None:
        """Write the buffer to disk, creating the file if needed."""
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(self._text, encoding="utf-8")
            self._dirty = False
            self._mtime = self._disk_mtime()
            log.info("Saved %s", self._path)

    def revert(self) -> None:
        """Discard unsaved edits and reload from disk."""
        with self._lock:
            self._load()
            log.info("Reverted %s", self._path)

    # ------------------------------------------------------------------
    # Disk sync
    # ------------------------------------------------------------------

    def reload_if_clean(self) -> bool:
        """
        Reload from disk if the file changed since it was last read or written.

        Unsaved edits are never thrown away: a dirty buffer is kept and the
        change on disk is only logged (once per change).

        Returns:
            True if the buffer was reloaded
        """
        with self._lock:
            mtime = self._disk_mtime()
            if mtime == self._mtime:
                return False
            if self._dirty:
                log.warning("%s changed on disk; keeping unsaved edits", self._path)
                self._mtime = mtime
                return False
            self._load()
            log.info("Reloaded %s from disk", self._path)
            return True

    def _disk_mtime(self) -> float:
        try:
            return self._path.stat().st_mtime
        except OSError:
            return 0.0

    def _load(self) -> None:
        if self._path.is_file():
            self._text = self._path.read_text(encoding="utf-8")
        else:
            log.debug("Document %s does not exist yet; starting empty", self._path)
            self._text = ""
        self._dirty = False
        self._mtime = self._disk_mtime()
