"""Sharing code generation and normalisation."""
from __future__ import annotations

import secrets
from typing import Callable

from ..core.constants import SHARING_CODE_ALPHABET, SHARING_CODE_LENGTH
from ..core.exceptions import GenerationExhaustedError

CodeGenerator = Callable[[], str]


def generate_code(alphabet: str = SHARING_CODE_ALPHABET, length: int = SHARING_CODE_LENGTH) -> str:
    """Random code drawn from ``alphabet`` with a CSPRNG."""
    return "".join(secrets.choice(alphabet) for _ in range(length))


def normalize_code(value: str) -> str:
    return (value or "").strip().upper()


def is_well_formed(code: str) -> bool:
    return len(code) == SHARING_CODE_LENGTH and all(ch in SHARING_CODE_ALPHABET for ch in code)


def mask_code(code: str | None) -> str:
    """Log-safe form of a code: first two characters only."""
    if not code:
        return "-"
    return code[:2] + "*" * (len(code) - 2)


def unique_code(is_taken: Callable[[str], bool], *, generate: CodeGenerator = generate_code, max_attempts: int) -> str:
    """Return the first generated code for which ``is_taken`` is false.

    Raises GenerationExhaustedError after ``max_attempts`` rejected candidates.
    """
    for _ in range(max_attempts):
        code = generate()
        if not is_taken(code):
            return code
    raise GenerationExhaustedError(f"No free sharing code after {max_attempts} attempts")


def rotation_note(interval_seconds: float) -> str:
    """User-facing hint about how long a displayed code stays valid."""
    seconds = int(interval_seconds)
    if seconds >= 60 and seconds % 60 == 0:
        minutes = seconds // 60
        period = "minute" if minutes == 1 else f"{minutes} minutes"
    else:
        period = "second" if seconds == 1 else f"{seconds} seconds"
    return f"Sharing codes rotate every {period} for security"
