"""Upload checks for chat images: size, extension, and magic-byte signature."""

from pathlib import Path

from cli.config_models import ChatConfig

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}


class ImageValidationError(ValueError):
    """The uploaded file is not an acceptable image."""


def detect_image_type(data: bytes) -> str | None:
    """MIME type from the file signature, or None if unrecognized."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def validate_image(data: bytes, filename: str | None, config: ChatConfig | None = None) -> str:
    """Validate an upload and return its detected MIME type. Raises ImageValidationError."""
    config = config or ChatConfig()
    if not data:
        raise ImageValidationError("File is empty.")
    if len(data) > config.max_image_bytes:
        raise ImageValidationError(
            f"File size exceeds maximum allowed size of {config.max_image_bytes // (1024 * 1024)}MB."
        )

    if filename:
        extension = Path(filename).suffix.lower()
        if extension not in ALLOWED_EXTENSIONS:
            raise ImageValidationError(
                f"File extension '{extension}' is not allowed. "
                f"Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}."
            )

    mime_type = detect_image_type(data)
    if mime_type is None:
        raise ImageValidationError("Unable to determine file format from magic bytes.")
    if mime_type not in config.allowed_image_types:
        raise ImageValidationError(f"Image type {mime_type} is not allowed.")
    return mime_type
