"""Upload module for perfload."""

from .orchestrator import (
    UPLOAD_TARGETS,
    FileOutcome,
    UploadSummary,
    Uploader,
    UploadTarget,
    upload_all,
)

__all__ = [
    "UPLOAD_TARGETS",
    "FileOutcome",
    "UploadSummary",
    "UploadTarget",
    "Uploader",
    "upload_all",
]
