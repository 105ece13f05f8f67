"""Resolve references found in EPUB documents to archive-internal paths.

Archive paths are plain strings; nothing here touches the filesystem.
"""

from __future__ import annotations

import posixpath
import re
from typing import Optional
from urllib.parse import unquote

_EXTERNAL_RE = re.compile(r"^([a-z][a-z0-9+.\-]*:)?//", re.IGNORECASE)


def normalize_member_path(name: str) -> Optional[str]:
    """Canonical form of a zip member name, or None if it leaves the archive."""
    path = name.replace("\\", "/").lstrip("/")
    if not path:
        return None
    path = posixpath.normpath(path)
    if path == "." or _escapes(path):
        return None
    return path


def parent_directory(path: str) -> str:
    """Directory part of an archive path, '' for top-level members."""
    return posixpath.dirname(path.replace("\\", "/"))


def strip_query_and_fragment(ref: str) -> str:
    return ref.split("#", 1)[0].split("?", 1)[0]


def is_external(ref: str) -> bool:
    ref = ref.strip()
    return bool(_EXTERNAL_RE.match(ref)) or ref.lower().startswith("data:")


def resolve_reference(base_path: str, ref: Optional[str], root: str = "") -> Optional[str]:
    """Resolve ``ref`` as written in the document at ``base_path``.

    Returns the canonical archive path the reference points at, or None when
    it cannot address an archive member: empty or fragment-only references,
    absolute URLs, data URIs, paths climbing above the archive root and, when
    ``root`` is given, paths outside that content root.
    """
    if not ref or not ref.strip():
        return None
    if is_external(ref):
        return None

    clean = strip_query_and_fragment(ref.strip())
    if not clean:
        return None
    try:
        clean = unquote(clean, errors="strict")
    except UnicodeDecodeError:
        pass
    clean = clean.replace("\\", "/")

    root = _clean_root(root)
    if clean.startswith("/"):
        joined = posixpath.join(root, clean.lstrip("/"))
    else:
        joined = posixpath.join(parent_directory(base_path), clean)

    if not joined:
        return None
    resolved = posixpath.normpath(joined)
    if resolved == "." or _escapes(resolved):
        return None

    if root and not is_within(resolved, root):
        return None
    return resolved


def is_within(path: str, root: str) -> bool:
    root = _clean_root(root)
    if not root:
        return True
    return path == root or path.startswith(root + "/")


def _clean_root(root: str) -> str:
    root = (root or "").replace("\\", "/").strip("/")
    if not root:
        return ""
    root = posixpath.normpath(root)
    return "" if root == "." else root


def _escapes(path: str) -> bool:
    return path == ".." or path.startswith("../")
