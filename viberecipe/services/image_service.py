"""Validation and preparation of uploaded recipe photos."""

import io
import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from viberecipe.config import settings
from viberecipe.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

SUPPORTED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp", "image/heic", "image/gif")

# Photos of cookbook pages stay legible at this size and upload much faster
VISION_MAX_DIM = 1600
JPEG_QUALITY = 80
RESIZE_THRESHOLD_BYTES = 500_000


class ImageService:
    """Service for processing uploaded images."""

    @staticmethod
    def validate_image(file_content: bytes, declared_mime: Optional[str] = None) -> Tuple[bytes, str]:
        """
        Validate an uploaded image.

        Args:
            file_content: Image file bytes
            declared_mime: MIME type sent by the client, if any

        Returns:
            Tuple of (image_bytes, mime_type)

        Raises:
            ValidationError: If image is empty, too large or of an unsupported type
        """
        if not file_content:
            raise ValidationError("Image file is empty")

        if len(file_content) > settings.max_image_size:
            raise ValidationError(
                f"Image file too large (max {settings.max_image_size / 1024 / 1024:.0f}MB)"
            )

        mime_type = ImageService.detect_mime_type(file_content)
        if mime_type == "application/octet-stream" and declared_mime:
            mime_type = declared_mime.lower()

        if mime_type not in SUPPORTED_MIME_TYPES:
            raise ValidationError(
                f"Unsupported image format: {mime_type}. Supported: JPEG, PNG, WebP, HEIC, GIF"
            )

        return file_content, mime_type

    @staticmethod
    def detect_mime_type(file_content: bytes) -> str:
        """Detect MIME type from magic bytes."""
        if file_content.startswith(b"\xff\xd8\xff"):
            return "image/jpeg"
        if file_content.startswith(b"\x89PNG\r\n\x1a\n"):
            return "image/png"
        if file_content.startswith(b"RIFF") and b"WEBP" in file_content[:12]:
            return "image/webp"
        if file_content.startswith((b"GIF87a", b"GIF89a")):
            return "image/gif"
        if file_content[4:12] in (b"ftypheic", b"ftypheix", b"ftypmif1"):
            return "image/heic"
        return "application/octet-stream"

    @staticmethod
    def prepare_for_vision(image_bytes: bytes, mime_type: str) -> Tuple[bytes, str]:
        """
        Downscale and recompress large photos before sending them to Gemini.

        Small images and formats Pillow cannot open are returned unchanged.
        """
        if len(image_bytes) < RESIZE_THRESHOLD_BYTES:
            return image_bytes, mime_type

        try:
            with Image.open(io.BytesIO(image_bytes)) as im:
                if im.mode in ("RGBA", "LA") or (im.mode == "P" and "transparency" in im.info):
                    bg = Image.new("RGBA", im.size, (255, 255, 255, 255))
                    im = Image.alpha_composite(bg, im.convert("RGBA")).convert("RGB")
                else:
                    im = im.convert("RGB")

                w, h = im.size
                if max(w, h) > VISION_MAX_DIM:
                    scale = VISION_MAX_DIM / float(max(w, h))
                    im = im.resize((max(1, int(w * scale)), max(1, int(h * scale))), Image.LANCZOS)

                out = io.BytesIO()
                im.save(out, format="JPEG", quality=JPEG_QUALITY, optimize=True)
        except (UnidentifiedImageError, OSError) as e:
            logger.warning(f"Image resize skipped: {e}")
            return image_bytes, mime_type

        optimized = out.getvalue()
        logger.info(
            "Image optimized for vision",
            extra={"orig_bytes": len(image_bytes), "opt_bytes": len(optimized)},
        )
        return optimized, "image/jpeg"
