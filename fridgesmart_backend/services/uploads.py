"""Helpers for handling uploaded photos."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"


@dataclass(slots=True)
class UploadedImage:
    """An uploaded photo held in memory until it is analyzed."""

    filename: str
    mime_type: str
    image_bytes: bytes


def read_image_upload(image_file: FileStorage) -> UploadedImage:
    """Validate an uploaded file and return its bytes and content type."""

    if image_file.filename == "":
        raise ValueError("empty filename")

    image_bytes = image_file.read()
    if not image_bytes:
        raise ValueError("uploaded file was empty")

    filename = secure_filename(image_file.filename or "snapshot") or "snapshot"
    mime_type = image_file.mimetype or ""
    if not mime_type.startswith("image/"):
        guessed, _ = mimetypes.guess_type(filename)
        mime_type = guessed or DEFAULT_IMAGE_MIME_TYPE
    if not mime_type.startswith("image/"):
        raise ValueError("uploaded file must be an image")

    return UploadedImage(
        filename=filename,
        mime_type=mime_type,
        image_bytes=image_bytes,
    )
