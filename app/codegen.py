"""Random short-code generation.

Codes are opaque, fixed-length strings over the 62-symbol alphanumeric
alphabet. They carry no relation to the URL they point at or to creation
order; two calls may return the same code and callers are expected to
handle the collision.

How to Use
===========
**Production (OS randomness via nanoid)**::
    generator = CodeGenerator(length=8)
    code = generator.generate()

**Deterministic (seeded randomness provider)**::
    generator = CodeGenerator(length=8, rng=random.Random(42))
"""

import random
import string

from nanoid import generate

from app.config import get_settings

__all__ = ["ALPHABET", "CodeGenerator", "generate_short_code"]

ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits


class CodeGenerator:
    """Produces random short codes of a fixed length.

    Args:
        length: Number of characters per code.
        rng: Optional randomness provider. When omitted, nanoid draws from
            the OS entropy pool; when given, ``rng.choices`` is used so the
            sequence of codes is reproducible.
    """

    def __init__(self, length: int = 8, rng: random.Random | None = None) -> None:
        if length < 1:
            raise ValueError(f"code length must be positive, got {length}")
        self._length = length
        self._rng = rng

    def generate(self) -> str:
        if self._rng is None:
            return generate(ALPHABET, self._length)
        return "".join(self._rng.choices(ALPHABET, k=self._length))


def generate_short_code(length: int | None = None) -> str:
    length = length or get_settings().SHORT_CODE_LENGTH
    return CodeGenerator(length).generate()
