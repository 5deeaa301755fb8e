"""Pure image validation. Advisory only: images are always returned as bytes."""

import io
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError


# PIL format strings keyed by MIME type
_MIME_TO_FORMAT: dict[str, str] = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/gif": "GIF",
    "image/webp": "WEBP",
    "image/bmp": "BMP",
    "image/tiff": "TIFF",
}

SVG_MIME = "image/svg+xml"


@dataclass
class ImageValidation:
    valid: bool
    dimensions: str | None = None   # "W×H" when PIL could read the header
    detected_format: str | None = None
    warning: str | None = None      # set when valid=False


def validate_image_bytes(content_bytes: bytes, mime_type: str | None) -> ImageValidation:
    """
    Check that image bytes open with PIL and match the declared MIME type.

    Returns valid=False with a warning if:
    - PIL cannot open the bytes (truncated download, HTML error page, ...)
    - The detected format differs from the declared MIME type

    SVG is text, not raster: always valid without inspection.
    """
    if mime_type == SVG_MIME:
        return ImageValidation(valid=True)

    try:
        img = Image.open(io.BytesIO(content_bytes))
        w, h = img.size
        detected = img.format
    except (UnidentifiedImageError, OSError, ValueError):
        return ImageValidation(
            valid=False,
            warning=f"bytes are not a readable image (declared {mime_type or 'unknown'})",
        )

    expected = _MIME_TO_FORMAT.get((mime_type or "").lower())
    if expected and detected and detected != expected:
        return ImageValidation(
            valid=False,
            dimensions=f"{w}×{h}",
            detected_format=detected,
            warning=f"declared {mime_type} but content is {detected}",
        )

    return ImageValidation(valid=True, dimensions=f"{w}×{h}", detected_format=detected)
