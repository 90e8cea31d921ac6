"""
Résumé path resolver.

Paths are dot-separated segments, each optionally carrying a
non-negative index: "personal.email", "experience[0].title".
Missing paths resolve to "" so a fill pass never aborts on them.
"""

import re
from typing import Any, List, Optional, Tuple

RE_SEGMENT = re.compile(r"^(?P<key>[A-Za-z_][A-Za-z0-9_]*)(?:\[(?P<index>\d+)\])?$")


def parse_path(path: str) -> Optional[List[Tuple[str, Optional[int]]]]:
    """
    Split a path into (key, index) pairs.

    Returns None if any segment is malformed.
    """
    if not path or not isinstance(path, str):
        return None

    segments = []
    for part in path.split("."):
        m = RE_SEGMENT.match(part.strip())
        if not m:
            return None
        index = m.group("index")
        segments.append((m.group("key"), int(index) if index is not None else None))
    return segments


def is_valid_path(path: str) -> bool:
    return parse_path(path) is not None


def get_value(document: Any, path: str) -> Any:
    """
    Get a value from a résumé document by path.

    Sequences at the leaf are joined with ", " (skills).
    Falsy leaves and every miss return "".
    """
    segments = parse_path(path)
    if segments is None:
        return ""

    current = document
    for key, index in segments:
        if not isinstance(current, dict) or key not in current:
            return ""
        current = current[key]
        if index is not None:
            if not isinstance(current, list) or index >= len(current):
                return ""
            current = current[index]

    if isinstance(current, list):
        return ", ".join(str(item) for item in current if item is not None)
    if not current:
        return ""
    return current
