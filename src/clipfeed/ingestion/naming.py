"""Storage-name derivation for uploaded files."""

import re
import secrets
import string
import time

_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")
_RANDOM_ALPHABET = string.ascii_lowercase + string.digits
_RANDOM_LENGTH = 6
_FALLBACK_BASE = "video"


def sanitize(text: str) -> str:
    """Replace every character outside [A-Za-z0-9_-] with an underscore."""
    return _UNSAFE.sub("_", text)


def split_filename(filename: str) -> tuple[str, str]:
    """Split a client-supplied filename into (base, extension).

    Directory components from either separator are discarded first.
    The extension keeps its leading dot and is lower-cased; a leading
    dot alone (".bashrc") is not treated as an extension.
    """
    name = re.split(r"[\\/]", filename or "")[-1]
    dot = name.rfind(".")
    if dot <= 0:
        return name, ""
    return name[:dot], name[dot:].lower()


def derive_storage_name(filename: str, *, now_ms: int | None = None) -> str:
    """Derive a collision-resistant, traversal-safe storage name.

    Format: ``{epoch_ms}_{random6}_{sanitized_base}{.ext}``. Uniqueness
    comes from the time and random components, so concurrent uploads
    of the same file need no coordination.

    Args:
        filename: Original filename as sent by the client.
        now_ms: Override for the time component (tests).
    """
    base, ext = split_filename(filename)
    safe_base = sanitize(base) or _FALLBACK_BASE
    if ext:
        safe_ext = sanitize(ext[1:])
        ext = f".{safe_ext}" if safe_ext else ""

    stamp = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    token = "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(_RANDOM_LENGTH))
    return f"{stamp}_{token}_{safe_base}{ext}"
