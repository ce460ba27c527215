"""
Chat attachment validation.

Checks run in this order: blocked extension, size ceiling for the attachment
category, then (images and videos only) the file signature against the
declared MIME type.
"""
import math
import re
from typing import Dict, List, Optional, Tuple

MB = 1024 * 1024
MAX_IMAGE_SIZE = 5 * MB
MAX_VIDEO_SIZE = 20 * MB
MAX_DOC_SIZE = 10 * MB

MAX_SIZES = {
    "image": MAX_IMAGE_SIZE,
    "video": MAX_VIDEO_SIZE,
    "document": MAX_DOC_SIZE,
}

IMAGE_TYPES = ["image/jpeg", "image/png", "image/jpg", "image/webp", "image/gif"]
VIDEO_TYPES = ["video/mp4", "video/quicktime", "video/x-m4v"]

# Never allowed regardless of MIME type
BLOCKED_EXTENSIONS = [
    ".exe", ".bat", ".cmd", ".com", ".msi", ".scr", ".pif",
    ".sh", ".bash", ".csh", ".ksh",
    ".vbs", ".vbe", ".js", ".jse", ".ws", ".wsf", ".wsc", ".wsh",
    ".ps1", ".psm1", ".psd1",
    ".dll", ".sys", ".drv",
    ".app", ".action", ".command",
    ".apk", ".ipa",
    ".jar", ".class",
    ".php", ".asp", ".aspx", ".jsp",
    ".html", ".htm", ".svg",
]

# MIME type -> alternatives; an alternative matches when every (offset, bytes) part matches
Signature = List[Tuple[int, bytes]]
_ISO_BMFF = [[(4, b"ftyp")]]
MAGIC_BYTES: Dict[str, List[Signature]] = {
    "image/jpeg": [[(0, b"\xFF\xD8\xFF")]],
    "image/jpg": [[(0, b"\xFF\xD8\xFF")]],
    "image/png": [[(0, b"\x89PNG")]],
    "image/gif": [[(0, b"GIF8")]],
    "image/webp": [[(0, b"RIFF"), (8, b"WEBP")]],
    "video/mp4": _ISO_BMFF,
    "video/x-m4v": _ISO_BMFF,
    "video/quicktime": _ISO_BMFF + [[(4, b"moov")], [(4, b"mdat")], [(4, b"wide")], [(4, b"free")], [(4, b"skip")]],
}
SIGNATURE_READ_BYTES = 12

MAX_FILENAME_LENGTH = 100


class AttachmentValidationError(ValueError):
    """Raised with a message that is safe to show to the user"""


def get_attachment_type(mime_type: str) -> str:
    mime = (mime_type or "").lower()
    if mime in IMAGE_TYPES:
        return "image"
    if mime in VIDEO_TYPES:
        return "video"
    return "document"


def has_blocked_extension(filename: str) -> bool:
    lower = (filename or "").lower()
    return any(lower.endswith(ext) for ext in BLOCKED_EXTENSIONS)


def _half_up(value: float, digits: int = 0) -> float:
    # Format specs round half to even; size labels round half up
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def _mb(size: int) -> str:
    return f"{_half_up(size / MB, 1):.1f}MB"


def validate_attachment(name: str, size: int, attachment_type: str) -> Optional[str]:
    """Return a user-facing error message, or None when the attachment is acceptable."""
    if has_blocked_extension(name):
        return f'File "{name}" has a blocked file type. Executables and scripts are not allowed.'

    if attachment_type == "image" and size > MAX_IMAGE_SIZE:
        return f'Image "{name}" is too large ({_mb(size)}). Maximum allowed is 5MB.'
    if attachment_type == "video" and size > MAX_VIDEO_SIZE:
        return f'Video "{name}" is too large ({_mb(size)}). Maximum allowed is 20MB.'
    if attachment_type == "document" and size > MAX_DOC_SIZE:
        return f'File "{name}" is too large ({_mb(size)}). Maximum allowed is 10MB.'
    return None


def validate_magic_bytes(content: Optional[bytes], mime_type: str) -> bool:
    """
    True when the leading bytes match a known signature for the MIME type.
    Unknown MIME types pass (blocked extensions are checked separately);
    missing or unreadable content fails.
    """
    signatures = MAGIC_BYTES.get((mime_type or "").lower())
    if not signatures:
        return True
    if not content:
        return False
    head = bytes(content[:SIGNATURE_READ_BYTES])
    return any(
        all(head[offset:offset + len(expected)] == expected for offset, expected in signature)
        for signature in signatures
    )


def sanitize_filename(name: str) -> str:
    """Strip path traversal and special characters"""
    safe = (name or "").replace("..", "")
    safe = re.sub(r"[^a-zA-Z0-9._-]", "_", safe)
    return safe[:MAX_FILENAME_LENGTH]


def build_storage_path(user_id: str, conversation_id: str, filename: str, timestamp_ms: int) -> str:
    # First folder must be the uploader id; the storage RLS policy checks it
    return f"{user_id}/{conversation_id}/{timestamp_ms}_{sanitize_filename(filename)}"


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < MB:
        return f"{_half_up(size / 1024):.0f} KB"
    return f"{_half_up(size / MB, 1):.1f} MB"


def check_attachment(name: str, mime_type: str, content: bytes) -> str:
    """Run every check on an in-memory upload; returns the attachment type or raises AttachmentValidationError."""
    attachment_type = get_attachment_type(mime_type)
    error = validate_attachment(name, len(content), attachment_type)
    if error:
        raise AttachmentValidationError(error)
    if attachment_type in ("image", "video") and not validate_magic_bytes(content, mime_type):
        raise AttachmentValidationError(
            f'File "{name}" does not match its declared type. The file may be corrupted or incorrectly named.'
        )
    return attachment_type
