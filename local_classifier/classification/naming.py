"""
Naming Helpers
==============

Suggested file names and matching of a predicted category to the user's
own destination folders.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

GENERIC_PREFIXES = ("IMG", "DSC", "DCIM", "PHOTO", "IMAGE", "SCREENSHOT", "SCREEN")

_DIGITS_ONLY = re.compile(r"^\d+$")


@dataclass(frozen=True)
class CustomFolder:
    """A user-defined destination folder."""
    id: str
    name: str
    path: str


def is_generic_name(name: str) -> bool:
    """True for camera/screenshot style names such as ``IMG_1234`` or ``20240101``."""
    return name.upper().startswith(GENERIC_PREFIXES) or bool(_DIGITS_ONLY.match(name))


def suggest_file_name(original_name: str, category: str, now: Optional[datetime] = None) -> str:
    """Suggest a readable name for a file.

    Separators become spaces; generic names are replaced by the category
    and a timestamp.

    Args:
        original_name: File name without extension.
        category: Predicted category name.
        now: Timestamp to use; defaults to the current time.
    """
    cleaned = original_name.replace("_", " ").replace("-", " ").strip()
    if is_generic_name(cleaned):
        timestamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
        return f"{category}_{timestamp}"
    return cleaned


def match_custom_folder(category: str, folders: Optional[Sequence[CustomFolder]]) -> Optional[CustomFolder]:
    """Find the user folder that best fits ``category``.

    Tries an exact name match, then the category as a substring of the
    folder name or path, then any single word of the category inside the
    folder name. All comparisons ignore case.
    """
    if not folders:
        return None

    target = category.lower()

    for folder in folders:
        if folder.name.lower() == target:
            return folder

    for folder in folders:
        if target in folder.name.lower() or target in folder.path.lower():
            return folder

    words = [w for w in target.split(" ") if w]
    for folder in folders:
        folder_name = folder.name.lower()
        if any(word in folder_name for word in words):
            return folder

    return None
