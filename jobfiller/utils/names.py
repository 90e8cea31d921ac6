"""Name helpers shared by the structurer and the form filler."""

from typing import Dict


def split_name(full_name: str) -> Dict[str, str]:
    """
    "Jane Q Public" -> {"first": "Jane", "last": "Q Public"}
    "Madonna"       -> {"first": "Madonna", "last": ""}
    """
    parts = (full_name or "").split()
    if not parts:
        return {"first": "", "last": ""}
    return {"first": parts[0], "last": " ".join(parts[1:])}
