"""Referral and family-group code generation."""

from __future__ import annotations

import re
import secrets
import string
from collections.abc import Callable

from .constants import (
    DEFAULT_CODE_MAX_ATTEMPTS,
    GROUP_CODE_LENGTH,
    GROUP_CODE_PREFIX,
    REFERRAL_CODE_FILLER,
    REFERRAL_CODE_LETTERS,
    REFERRAL_CODE_MAX_NUMBER,
    REFERRAL_CODE_MIN_NUMBER,
)
from .errors import StoreError

GROUP_CODE_ALPHABET = string.digits + string.ascii_uppercase
NON_LETTERS = re.compile(r"[^A-Z]")


def generate_referral_code(name: str | None = "USER") -> str:
    """Build a referral code like ``RAHIM4821`` from a display name.

    Only the first word of the name is used. Characters outside A-Z are
    dropped and short names are padded with ``X`` up to five letters.
    Collisions are not checked here.
    """
    if name is None:
        name = "USER"
    words = str(name).strip().upper().split()
    letters = NON_LETTERS.sub("", words[0] if words else "")
    letters = letters.ljust(REFERRAL_CODE_LETTERS, REFERRAL_CODE_FILLER)
    span = REFERRAL_CODE_MAX_NUMBER - REFERRAL_CODE_MIN_NUMBER + 1
    number = REFERRAL_CODE_MIN_NUMBER + secrets.randbelow(span)
    return f"{letters}{number}"


def generate_group_code() -> str:
    """Return a candidate family group code such as ``FAM-7QK2ZD``."""
    token = "".join(
        secrets.choice(GROUP_CODE_ALPHABET) for _ in range(GROUP_CODE_LENGTH)
    )
    return f"{GROUP_CODE_PREFIX}{token}"


def unique_code(
    factory: Callable[[], str],
    exists: Callable[[str], bool],
    max_attempts: int = DEFAULT_CODE_MAX_ATTEMPTS,
) -> str:
    """Generate codes until ``exists`` reports a free one.

    This only protects serial callers. Writers still have to create the
    code's document with a create-if-absent write.
    """
    for _ in range(max_attempts):
        candidate = factory()
        if not exists(candidate):
            return candidate
    raise StoreError(f"Could not find a free code after {max_attempts} attempts.")
