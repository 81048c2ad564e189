from .service import FilePayload, FileSyncService

__all__ = ["FilePayload", "FileSyncService"]
