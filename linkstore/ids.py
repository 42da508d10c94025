"""
Short record identifiers.
"""

from __future__ import annotations

import random
import re
import string
from typing import Optional

ALPHABET = string.digits + string.ascii_lowercase
DEFAULT_ID_LENGTH = 6

_VALID_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def generate_id(
    rng: Optional[random.Random] = None, length: int = DEFAULT_ID_LENGTH
) -> str:
    """
    Return a random base-36 token. Existing ids are not checked, so a
    collision overwrites the earlier record.
    """
    rng = rng or random
    return "".join(rng.choices(ALPHABET, k=length))


def is_valid_id(value: str) -> bool:
    return bool(value) and bool(_VALID_ID.match(value))
