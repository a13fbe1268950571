"""Error taxonomy for link store operations.

Every failure raised by a :class:`~app.link_store.LinkStore` derives from
:class:`LinkStoreError`, so callers can catch the whole family at once or
branch on the specific kind:

- :class:`LinkNotFoundError` — the code has no entry in the mapping.
- :class:`StorageError` — the backing store failed or did not answer in time.
  The original exception is always chained as ``__cause__``.
- :class:`CodeSpaceExhaustedError` — no free code was claimed within the
  attempt budget. The existing mapping is left untouched.

The HTTP layer maps these to 404, 500 and 503 respectively (see app/main.py).
"""

__all__ = [
    "LinkStoreError",
    "LinkNotFoundError",
    "StorageError",
    "CodeSpaceExhaustedError",
]


class LinkStoreError(Exception):
    """Base class for link store failures."""


class LinkNotFoundError(LinkStoreError):
    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"url not found: {code!r}")


class StorageError(LinkStoreError):
    def __init__(self, operation: str, cause: BaseException) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"storage failure during {operation}: {cause}")


class CodeSpaceExhaustedError(LinkStoreError):
    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"no free short code found after {attempts} attempts")
