"""
Dataset Store: persists raw uploads to disk and reads them back.

Files are named by upload time in epoch milliseconds plus the original
extension. Two uploads landing in the same millisecond overwrite each
other; nothing here guards against that.
"""

import logging
import mimetypes
import time
from pathlib import Path
from typing import Optional, Union

from charting.errors import DatasetNotFound, ParseError
from charting.models import StoredFile

logger = logging.getLogger(__name__)

SUPPORTED_ENCODINGS = ["utf-8-sig", "cp1252", "latin-1"]
DEFAULT_MIMETYPE = "application/octet-stream"


def normalize_mimetype(mimetype: Optional[str]) -> str:
    """Lowercase a content type and drop parameters such as ``charset``."""
    if not mimetype:
        return ""
    return mimetype.split(";", 1)[0].strip().lower()


def declared_mimetype(content_type: Optional[str], original_name: str) -> str:
    """Content type sent with the upload, else a guess from the extension."""
    mimetype = normalize_mimetype(content_type)
    if mimetype:
        return mimetype
    guessed, _ = mimetypes.guess_type(original_name)
    return guessed or DEFAULT_MIMETYPE


def decode_content(raw: bytes) -> str:
    """Decode uploaded bytes, trying each supported encoding in turn."""
    last_error = None
    for encoding in SUPPORTED_ENCODINGS:
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError as e:
            last_error = e
    raise ParseError(f"Could not decode file content: {last_error}")


class DatasetStore:
    """Filesystem storage for uploaded datasets."""

    def __init__(self, upload_dir: Union[str, Path]):
        self.root = Path(upload_dir)
        self.root.mkdir(parents=True, exist_ok=True)

    def _generate_name(self, original_name: str) -> str:
        return f"{int(time.time() * 1000)}{Path(original_name).suffix}"

    def path_for(self, filename: str) -> Path:
        if not filename or Path(filename).name != filename:
            raise DatasetNotFound(filename)
        return self.root / filename

    def store(self, original_name: str, content: bytes,
              mimetype: Optional[str] = None) -> StoredFile:
        filename = self._generate_name(original_name)
        path = self.root / filename
        path.write_bytes(content)

        stored = StoredFile(
            filename=filename,
            originalname=original_name,
            mimetype=declared_mimetype(mimetype, original_name),
            size=len(content),
        )
        logger.info(
            f"Stored upload {original_name!r} as {filename} "
            f"({stored.mimetype}, {stored.size} bytes)"
        )
        return stored

    def read_bytes(self, filename: str) -> bytes:
        path = self.path_for(filename)
        if not path.is_file():
            raise DatasetNotFound(filename)
        return path.read_bytes()

    def read_text(self, filename: str) -> str:
        return decode_content(self.read_bytes(filename))
