"""Spot code generation.

A spot code is derived from the names along its path:

    "Camera da letto", "Armadio grande", "Cassetto 1" -> CAM-ARM-C1

Room and container contribute the first three normalized characters, the
spot label an abbreviation. When the base code is taken a numeric suffix
starting at 2 is appended (CAM-ARM-C12, CAM-ARM-C13, ...).
"""

import re
from collections.abc import Collection

from homestash.exceptions import CollisionExhaustedError

ACCENT_FOLDING = str.maketrans(
    {
        "à": "a", "á": "a", "â": "a",
        "è": "e", "é": "e", "ê": "e",
        "ì": "i", "í": "i", "î": "i",
        "ò": "o", "ó": "o", "ô": "o",
        "ù": "u", "ú": "u", "û": "u",
        "'": None, " ": None,
    }
)

CODE_PATTERN = re.compile(r"^[A-Z]{1,3}-[A-Z]{1,3}-[A-Z0-9]{1,4}\d*$")

PREFIX_LENGTH = 3
SEPARATOR = "-"
FIRST_SUFFIX = 2


def normalize(text: str) -> str:
    """
    Fold accents and strip everything that is not a letter or digit.

    Input is lowercased first so accented capitals fold like their
    lowercase forms. Letters outside the folding table are kept as they are.
    """
    folded = text.lower().translate(ACCENT_FOLDING)
    return "".join(ch for ch in folded if ch.isalnum())


def abbreviate_label(label: str) -> str:
    """
    Abbreviate a spot label.

    - "Cassetto" -> "ca"
    - "Cassetto 1" -> "c1"
    - "Mensola alta" -> "ma"
    - "Ripiano in alto" -> "ria"

    The result is not uppercased; generate_code does that.
    """
    words = label.split()
    if not words:
        return ""
    if len(words) == 1:
        return normalize(words[0])[:2]
    if len(words) == 2:
        first, second = normalize(words[0]), normalize(words[1])
        if second.isdigit():
            return first[:1] + second
        return first[:1] + second[:1]
    return "".join(normalize(word)[:1] for word in words[:3])


def build_base_code(room_name: str, container_name: str, spot_label: str) -> str:
    """Build the unsuffixed code for a room/container/label triple."""
    room_prefix = normalize(room_name)[:PREFIX_LENGTH].upper()
    container_prefix = normalize(container_name)[:PREFIX_LENGTH].upper()
    spot_abbrev = abbreviate_label(spot_label).upper()
    return SEPARATOR.join([room_prefix, container_prefix, spot_abbrev])


def generate_code(
    room_name: str,
    container_name: str,
    spot_label: str,
    existing_codes: Collection[str],
    max_suffix: int | None = None,
) -> str:
    """
    Generate a spot code that is not in existing_codes.

    Args:
        room_name: Name of the room that owns the container
        container_name: Name of the container that owns the spot
        spot_label: Label of the new spot
        existing_codes: Codes already in use
        max_suffix: Optional cap on the numeric suffix

    Returns:
        The base code, or the base code with the lowest free suffix >= 2

    Raises:
        CollisionExhaustedError: If max_suffix is set and every suffix up to it is taken
    """
    base_code = build_base_code(room_name, container_name, spot_label)
    if base_code not in existing_codes:
        return base_code

    suffix = FIRST_SUFFIX
    while f"{base_code}{suffix}" in existing_codes:
        suffix += 1
        if max_suffix is not None and suffix > max_suffix:
            raise CollisionExhaustedError(base_code, max_suffix)
    if max_suffix is not None and suffix > max_suffix:
        raise CollisionExhaustedError(base_code, max_suffix)
    return f"{base_code}{suffix}"


def is_valid_code(code: str) -> bool:
    """Check that a scanned or imported code has the ROOM-CONTAINER-SPOT shape."""
    if not isinstance(code, str):
        return False
    return CODE_PATTERN.fullmatch(code) is not None
