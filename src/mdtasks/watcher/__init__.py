from .document_watcher import DocumentWatcher

__all__ = ["DocumentWatcher"]
