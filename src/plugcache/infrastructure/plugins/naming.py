"""Deterministic cache file names for plugin source URLs."""

from __future__ import annotations

import hashlib
import posixpath
import re
from urllib.parse import unquote, urlsplit

_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]")
_MAX_BASENAME_LEN = 96
_DIGEST_LEN = 16


def derive_artifact_name(source_id: str) -> str:
    """Map a plugin source URL to a cache-local file name.

    The name is ``<digest>-<basename>``:

    - ``basename`` is the last segment of the URL path, restricted to
      ``[A-Za-z0-9._-]``. Query string and fragment never appear in it.
    - ``digest`` is the first 16 hex chars of SHA-256 over the whole
      identifier, so ``https://a/x.wasm`` and ``https://b/x.wasm`` (or the
      same path with different queries) never share a file.

    Example: ``https://plugins.dprint.dev/json-0.17.0.wasm`` ->
    ``'<16 hex chars>-json-0.17.0.wasm'``.
    """
    path = urlsplit(source_id).path
    basename = posixpath.basename(unquote(path))
    basename = _UNSAFE_CHARS_RE.sub("_", basename).lstrip(".")
    basename = basename[-_MAX_BASENAME_LEN:] or "plugin"

    digest = hashlib.sha256(source_id.encode("utf-8")).hexdigest()[:_DIGEST_LEN]
    return f"{digest}-{basename}"
