"""
Path codec - maps between public object URLs and storage keys.

Key behaviors:
- Derive the storage key of an object from its public URL
- Generate a fresh, practically unique key for a new upload
- Build the public URL of a key (pure, no I/O)

Public URLs look like ``<base>/<bucket>/<key>``; for Supabase the base ends in
``/storage/v1/object/public``. The key is the final path segment.
"""

from __future__ import annotations

import re
import secrets
import time
from pathlib import PurePosixPath
from urllib.parse import quote, unquote, urlsplit

DEFAULT_PUBLIC_PATH_PREFIX = "/storage/v1/object/public"

_EXTENSION_RE = re.compile(r"^[a-z0-9]{1,10}$")


def build_public_url(base_url: str, bucket: str, key: str) -> str:
    """Public URL of key inside bucket, under base_url."""
    return f"{base_url.rstrip('/')}/{quote(bucket, safe='')}/{quote(key, safe='')}"


def key_from_public_url(
    url: str | None,
    bucket: str,
    *,
    public_path_prefix: str = DEFAULT_PUBLIC_PATH_PREFIX,
) -> str | None:
    """
    Storage key for a public object URL.

    Returns None instead of raising when the URL is empty, malformed, or not
    shaped like ``.../<bucket>/<key>``.
    """
    if not url or not isinstance(url, str):
        return None

    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None

    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None

    path = parts.path

    # Exact public-object prefix: everything after the bucket is the key
    prefix = f"{public_path_prefix.rstrip('/')}/{bucket}/"
    if public_path_prefix and path.startswith(prefix):
        key = unquote(path[len(prefix) :])
        return key or None

    segments = path.split("/")
    if len(segments) < 3:
        return None

    key = unquote(segments[-1])
    if not key or unquote(segments[-2]) != bucket:
        return None
    return key


def file_extension(filename: str) -> str:
    """Lower-cased extension without the dot, or "" if absent or unusable."""
    suffix = PurePosixPath(filename.replace("\\", "/")).suffix.lower().lstrip(".")
    return suffix if _EXTENSION_RE.match(suffix) else ""


def new_key(original_filename: str, *, now_ms: int | None = None) -> str:
    """
    Generate a storage key for a new upload.

    Format: ``{epoch_millis}_{random}.{ext}``. The random part carries 64 bits,
    so keys from concurrent sessions do not collide without coordination.
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    stem = f"{now_ms}_{secrets.token_hex(8)}"
    ext = file_extension(original_filename)
    return f"{stem}.{ext}" if ext else stem
