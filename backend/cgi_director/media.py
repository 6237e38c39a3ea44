"""Reference image handling for the context step."""

from __future__ import annotations

import base64
from dataclasses import dataclass

from .errors import ValidationError

DEFAULT_MAX_IMAGE_BYTES = 4 * 1024 * 1024

# Magic-byte prefixes for the formats browsers commonly upload.
_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


def sniff_mime_type(data: bytes) -> str | None:
    for prefix, mime in _SIGNATURES:
        if data.startswith(prefix):
            return mime
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def _format_megabytes(num_bytes: int) -> str:
    value = num_bytes / (1024 * 1024)
    return f"{value:.0f}MB" if value.is_integer() else f"{value:.1f}MB"


@dataclass(frozen=True)
class ImageAttachment:
    """An uploaded reference image, ready to be sent alongside a prompt."""

    data: bytes
    mime_type: str
    name: str | None = None

    @classmethod
    def from_upload(
        cls,
        name: str | None,
        data: bytes,
        mime_type: str | None = None,
        max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
    ) -> "ImageAttachment":
        """Validate raw upload bytes and wrap them.

        Raises:
            ValidationError: if the file is empty, too large, or not an image.
        """
        if not data:
            raise ValidationError("The uploaded file is empty.")
        if len(data) > max_bytes:
            raise ValidationError(f"Image must be smaller than {_format_megabytes(max_bytes)}.")

        declared = (mime_type or "").strip().lower()
        if declared == "image/jpg":
            declared = "image/jpeg"
        resolved = declared if declared.startswith("image/") else sniff_mime_type(data)
        if not resolved:
            raise ValidationError("Only image files can be used as a visual reference.")
        return cls(data=bytes(data), mime_type=resolved, name=name)

    @property
    def size(self) -> int:
        return len(self.data)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"
