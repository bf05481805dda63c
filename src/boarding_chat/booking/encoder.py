"""
Encoder for uploaded files.

Turns a selected file into an inline representation (mime type + base64)
that can travel inside a turn or a data: URI.
"""

import asyncio
import base64
import mimetypes
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import BaseModel, Field

from ..error_handling.exceptions import AttachmentError


DEFAULT_MIME_TYPE = "application/octet-stream"


class UploadedFile(BaseModel):
    """
    A file chosen in the form's file input.

    Attributes:
        filename: Name shown to the visitor
        path: Where the file's bytes can be read from
        content_type: Mime type declared by the uploader, if any
    """

    filename: str
    path: Path
    content_type: Optional[str] = None


class EncodedFile(BaseModel):
    """An encoded file ready for transmission."""

    mime_type: str
    data: str = Field(..., description="Base64 payload")

    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


def resolve_mime_type(upload: UploadedFile) -> str:
    """
    Pick the mime type for an upload.

    The declared content type wins, then a guess from the filename.
    """
    if upload.content_type and upload.content_type.strip():
        return upload.content_type.strip().lower()
    guessed, _ = mimetypes.guess_type(upload.filename)
    return guessed or DEFAULT_MIME_TYPE


def encode_bytes(data: bytes, mime_type: str) -> EncodedFile:
    """Encode raw bytes."""
    return EncodedFile(mime_type=mime_type, data=base64.b64encode(data).decode("ascii"))


async def encode_file(upload: UploadedFile, max_bytes: Optional[int] = None) -> EncodedFile:
    """
    Read and encode an uploaded file.

    The read happens off the event loop.

    Args:
        upload: File to encode
        max_bytes: Reject files larger than this

    Returns:
        EncodedFile with mime type and base64 payload

    Raises:
        AttachmentError: If the file is missing, unreadable, empty or too large
    """
    try:
        data = await asyncio.to_thread(Path(upload.path).read_bytes)
    except OSError as e:
        logger.warning(f"Could not read upload {upload.filename}: {e}")
        raise AttachmentError(
            f"Could not read {upload.path}: {e}",
            filename=upload.filename,
            original_error=e,
        ) from e

    if not data:
        raise AttachmentError(f"{upload.filename} is empty", filename=upload.filename)

    if max_bytes is not None and len(data) > max_bytes:
        raise AttachmentError(
            f"{upload.filename} is {len(data)} bytes, limit is {max_bytes}",
            filename=upload.filename,
            size=len(data),
            max_bytes=max_bytes,
        )

    encoded = encode_bytes(data, resolve_mime_type(upload))
    logger.debug(f"Encoded {upload.filename} | mime={encoded.mime_type} | bytes={len(data)}")
    return encoded
