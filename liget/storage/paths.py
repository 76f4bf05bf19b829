"""
Pure path helpers for mapping root-relative paths to absolute ones and back.
"""
from __future__ import annotations

import os
from typing import Optional

_SEPARATORS = os.sep + (os.altsep or "")


def ensure_trailing_slash(path: str) -> str:
    if not path.endswith(os.sep):
        return path + os.sep
    return path


def get_full_path(root: str, path: Optional[str]) -> str:
    """
    Resolve a root-relative path to an absolute one.

    An empty or missing relative path denotes the root itself. Leading
    separators are stripped so the join can never discard the root, and a
    path that climbs out of the root through '..' raises ValueError.
    """
    if not path:
        return root
    full_path = os.path.normpath(os.path.join(root, path.lstrip(_SEPARATORS)))
    if full_path != root and os.path.commonpath([root, full_path]) != root:
        raise ValueError(f"Path {path} resolves outside root {root}")
    return full_path


def make_relative_path(root: str, full_path: str) -> str:
    """
    Inverse of get_full_path: strip the root prefix and any leading separator.
    """
    if full_path != root and not full_path.startswith(ensure_trailing_slash(root)):
        raise ValueError(f"Path {full_path} is not under root {root}")
    return full_path[len(root):].lstrip(_SEPARATORS)
