"""Image MIME sniffing from magic bytes."""

from __future__ import annotations

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG", "image/png"),
    (b"GIF", "image/gif"),
)


def detect_mime_type(data: bytes) -> str:
    """Sniff JPEG, PNG, GIF or WebP; anything else is reported as JPEG."""

    if len(data) < 4:
        return DEFAULT_IMAGE_MIME_TYPE
    for signature, mime_type in _SIGNATURES:
        if data.startswith(signature):
            return mime_type
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return DEFAULT_IMAGE_MIME_TYPE


def is_recognized_image(data: bytes) -> bool:
    """True for payloads that are already JPEG or PNG files."""

    return data.startswith(b"\xff\xd8\xff") or data.startswith(b"\x89PNG")
