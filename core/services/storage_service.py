# =============================================================================
# core/services/storage_service.py - CSV Original Storage
# =============================================================================
# Keeps the original uploaded CSV in the csv-uploads bucket so a persona can
# always be traced back to the file it came from.
#
# Path layout: {project_id}/{unix_ms}-{filename}
# =============================================================================

import logging
import time
from pathlib import PurePosixPath

from app.config import settings
from app.exceptions import FileTooLargeError, InvalidFileTypeError, ValidationError
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class StorageService:
    """
    Upload and remove CSV originals.

    Validation (extension, size) happens here, before anything is sent to
    storage.
    """

    def __init__(
        self,
        store: SupabaseClient,
        allowed_extensions: list[str] | None = None,
        max_size_bytes: int | None = None,
    ):
        self.store = store
        self.allowed_extensions = allowed_extensions or settings.allowed_extensions_list
        self.max_size_bytes = max_size_bytes or settings.max_upload_size_bytes

    @staticmethod
    def build_path(project_id: str, filename: str, timestamp_ms: int | None = None) -> str:
        """Storage key for an upload; the timestamp keeps re-uploads distinct."""
        stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
        safe_name = PurePosixPath(filename).name
        return f"{project_id}/{stamp}-{safe_name}"

    def validate_upload(self, filename: str | None, content: bytes) -> str:
        """
        Check an upload before it is stored.

        Returns:
            The validated filename

        Raises:
            ValidationError: No filename or empty file
            InvalidFileTypeError: Extension not allowed
            FileTooLargeError: Over the size limit
        """
        if not filename:
            raise ValidationError(
                field="file",
                message="No file provided",
                suggestion="Send the CSV as multipart field 'file'",
            )

        extension = PurePosixPath(filename).suffix.lower()
        if extension not in self.allowed_extensions:
            raise InvalidFileTypeError(filename, self.allowed_extensions)

        if len(content) > self.max_size_bytes:
            raise FileTooLargeError(
                len(content) / (1024 * 1024),
                self.max_size_bytes // (1024 * 1024),
            )

        if not content:
            raise ValidationError(
                field="file",
                message="Uploaded file is empty",
                suggestion="Upload a CSV with a header row and at least one data row",
            )

        return filename

    def upload_csv_original(self, project_id: str, filename: str, content: bytes) -> str:
        """
        Store the original CSV bytes.

        Returns:
            Storage path inside the bucket

        Raises:
            UpstreamError: If the upload fails
        """
        path = self.build_path(project_id, filename)
        self.store.upload_file(path, content, content_type="text/csv")
        logger.info(f"Stored CSV original for project {project_id}: {path}")
        return path

    def remove(self, path: str | None) -> bool:
        """Best-effort removal of a stored original."""
        if not path:
            return False
        return self.store.remove_file(path)
