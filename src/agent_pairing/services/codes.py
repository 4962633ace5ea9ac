"""Pairing code generation."""

import secrets
import string
from dataclasses import dataclass
from typing import Protocol

PAIRING_CODE_ALPHABET = string.ascii_uppercase + string.digits
PAIRING_CODE_LENGTH = 6


class CodeSource(Protocol):
    """Interface for anything that produces candidate pairing codes."""

    def generate(self) -> str:
        """Return a new candidate code."""


@dataclass(frozen=True)
class CodeGenerator(CodeSource):
    """Draws codes uniformly from a fixed alphabet using ``secrets``."""

    length: int = PAIRING_CODE_LENGTH
    alphabet: str = PAIRING_CODE_ALPHABET

    def generate(self) -> str:
        """Return a random code; uniqueness is the caller's concern."""
        return "".join(secrets.choice(self.alphabet) for _ in range(self.length))


def is_valid_code(
    code: str,
    length: int = PAIRING_CODE_LENGTH,
    alphabet: str = PAIRING_CODE_ALPHABET,
) -> bool:
    """Check that a code has the expected length and characters."""
    return len(code) == length and all(char in alphabet for char in code)
