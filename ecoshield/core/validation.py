"""Validation for image payloads sent to the model."""

from __future__ import annotations

from typing import Tuple

IMAGE_PREFIX = "data:image/"
MAX_IMAGE_BYTES = 4 * 1024 * 1024


class ImageValidationError(ValueError):
    pass


class InvalidImageError(ImageValidationError):
    def __init__(self, reason: str = "Invalid image data") -> None:
        super().__init__(reason)


class ImageTooLargeError(ImageValidationError):
    def __init__(self, size: int, limit: int = MAX_IMAGE_BYTES) -> None:
        super().__init__(f"Image is {size} bytes; it must be smaller than {limit} bytes")
        self.size = size
        self.limit = limit


def split_data_uri(data_uri: str) -> Tuple[str, str]:
    """Return ``(mime_type, encoded_body)`` for an image data URI."""
    if not isinstance(data_uri, str) or not data_uri.startswith(IMAGE_PREFIX):
        raise InvalidImageError()
    header, sep, body = data_uri.partition(",")
    if not sep or not body:
        raise InvalidImageError()
    mime_type = header[len("data:"):].split(";", 1)[0]
    return mime_type, body


def decoded_size(encoded: str) -> int:
    """Estimate the decoded byte length of a base64 string without decoding it."""
    padding = len(encoded) - len(encoded.rstrip("="))
    return max(len(encoded) * 3 // 4 - min(padding, 2), 0)


def validate_image_data_uri(data_uri: str, limit: int = MAX_IMAGE_BYTES) -> Tuple[str, str]:
    """Check prefix, body and size; return ``(mime_type, encoded_body)``."""
    mime_type, body = split_data_uri(data_uri)
    size = decoded_size(body)
    if size >= limit:
        raise ImageTooLargeError(size, limit)
    return mime_type, body


def is_valid_image(data_uri: str, limit: int = MAX_IMAGE_BYTES) -> bool:
    try:
        validate_image_data_uri(data_uri, limit)
    except ImageValidationError:
        return False
    return True
