"""Upload ingestion: validate, name, write, then register."""

import logging
import mimetypes
import os
from pathlib import Path
from typing import BinaryIO

from clipfeed.config import settings
from clipfeed.errors import (
    PayloadTooLargeError,
    StorageFailure,
    UnsupportedMediaError,
    ValidationError,
)
from clipfeed.ingestion.naming import derive_storage_name
from clipfeed.models import Video
from clipfeed.storage.repository import VideoRepository

logger = logging.getLogger(__name__)


def normalize_mime(content_type: str | None) -> str:
    """Strip parameters and case from a declared MIME type ("Video/MP4; codecs=x" -> "video/mp4")."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


class UploadPipeline:
    """Turns an untrusted upload stream into a durable, queryable video.

    The file is streamed to a hidden ``.part`` file, fsynced and renamed
    into place before the store is asked for an id. A failure at any
    point removes whatever was written, so the store never references a
    missing file and rejected uploads leave nothing behind.
    """

    def __init__(
        self,
        repository: VideoRepository,
        uploads_dir: Path | None = None,
        max_bytes: int | None = None,
        allowed_mime_types: list[str] | None = None,
        chunk_size: int | None = None,
    ) -> None:
        self._repo = repository
        self._uploads_dir = Path(uploads_dir or settings.uploads_dir)
        self._max_bytes = max_bytes if max_bytes is not None else settings.max_upload_bytes
        allowed = allowed_mime_types if allowed_mime_types is not None else settings.allowed_mime_types
        self._allowed = frozenset(normalize_mime(m) for m in allowed)
        self._chunk_size = chunk_size or settings.upload_chunk_size

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    @property
    def uploads_dir(self) -> Path:
        return self._uploads_dir

    def ingest(
        self,
        title: str | None,
        stream: BinaryIO | None,
        filename: str | None,
        content_type: str | None,
        declared_size: int | None = None,
    ) -> Video:
        """Validate and persist one upload.

        Args:
            title: Caption for the clip; surrounding whitespace is dropped.
            stream: Readable binary file object with the upload body.
            filename: Original filename, used only to derive the storage name.
            content_type: Declared MIME type of the file part.
            declared_size: Size announced by the client, if any.

        Returns:
            The stored Video.

        Raises:
            ValidationError: Missing title or file.
            UnsupportedMediaError: MIME type not allowed.
            PayloadTooLargeError: Declared or streamed size above the ceiling.
            StorageFailure: Disk write or store insert failed.
        """
        title = (title or "").strip()
        if not title:
            raise ValidationError("title required")
        if stream is None or not filename:
            raise ValidationError("file required")

        mime = normalize_mime(content_type)
        if mime not in self._allowed:
            logger.warning("Rejected upload %r: unsupported type %r", filename, content_type)
            raise UnsupportedMediaError(
                f"Unsupported media type {mime or '(none)'}; allowed: {', '.join(sorted(self._allowed))}"
            )
        if declared_size is not None and declared_size > self._max_bytes:
            logger.warning("Rejected upload %r: declared size %d", filename, declared_size)
            raise self._too_large()

        storage_name = derive_storage_name(filename)
        final_path = self._write(stream, storage_name)

        try:
            video_id = self._repo.insert(title, storage_name)
        except BaseException:
            final_path.unlink(missing_ok=True)
            raise

        video = self._repo.get(video_id)
        if video is None:
            raise StorageFailure(f"Video {video_id} vanished after insert")
        logger.info("Stored upload %d: %s (%s)", video.id, video.title, storage_name)
        return video

    def ingest_path(self, path: Path, title: str) -> Video:
        """Ingest a local file, guessing its MIME type from the extension."""
        path = Path(path)
        if not path.is_file():
            raise ValidationError(f"file required: {path} does not exist")
        content_type, _ = mimetypes.guess_type(path.name)
        with path.open("rb") as fh:
            return self.ingest(
                title,
                fh,
                path.name,
                content_type,
                declared_size=path.stat().st_size,
            )

    def _write(self, stream: BinaryIO, storage_name: str) -> Path:
        """Stream to a temporary file with a hard size cutoff, then rename into place."""
        self._uploads_dir.mkdir(parents=True, exist_ok=True)
        final_path = self._uploads_dir / storage_name
        part_path = self._uploads_dir / f".{storage_name}.part"
        written = 0

        try:
            with part_path.open("xb") as fh:
                while chunk := stream.read(self._chunk_size):
                    written += len(chunk)
                    if written > self._max_bytes:
                        logger.warning("Rejected upload %s: exceeded %d bytes", storage_name, self._max_bytes)
                        raise self._too_large()
                    fh.write(chunk)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(part_path, final_path)
        except OSError as e:
            part_path.unlink(missing_ok=True)
            logger.exception("Failed to write upload %s", storage_name)
            raise StorageFailure(f"Failed to store upload: {e}") from e
        except BaseException:
            part_path.unlink(missing_ok=True)
            raise

        logger.debug("Wrote %d bytes to %s", written, final_path)
        return final_path

    def _too_large(self) -> PayloadTooLargeError:
        limit_mb = self._max_bytes / (1024 * 1024)
        return PayloadTooLargeError(f"File too large. Max: {limit_mb:.0f}MB")
