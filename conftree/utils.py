# conftree/utils.py
"""
conftree.utils
--------------

Shared helpers for dotted-path and file-path handling.
Used internally by conftree and available for downstream consumers.
"""

import os
from typing import Optional, Tuple


def split_path(path: str, separator: str = ".") -> Tuple[str, Optional[str]]:
    """Split a dotted path at the FIRST separator only.

    Args:
        path: Key path such as ``"db.primary.host"``.
        separator: Hierarchy separator.

    Returns:
        ``(head, tail)`` where ``tail`` is None when the path holds no
        separator.

    Examples:
        >>> split_path("db.primary.host")
        ('db', 'primary.host')
        >>> split_path("db")
        ('db', None)
    """
    head, sep, tail = path.partition(separator)
    if not sep:
        return head, None
    return head, tail


def join_path(*parts: str, separator: str = ".") -> str:
    """Join path segments with the separator, skipping empty prefixes.

    Examples:
        >>> join_path("db", "host")
        'db.host'
        >>> join_path("", "host")
        'host'
    """
    return separator.join(p for p in parts if p)


def expand_path(path: Optional[str]) -> Optional[str]:
    """Expand ~ and environment variables ($VAR, ${VAR}) in a path string.

    Returns None if ``path`` is None.
    """
    if path is None:
        return None
    return os.path.expandvars(os.path.expanduser(path))
