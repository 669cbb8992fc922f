"""Time-ordered, collision-resistant string identifiers.

Ids look like ``"<prefix>-<epoch ms>-<sequence>-<suffix>"``.  Within one
:class:`IdGenerator` the ``(timestamp, sequence)`` pair never repeats
while the clock does not go backwards; the random suffix only guards
against other generators issuing ids in the same millisecond.
"""

from __future__ import annotations

import secrets
import threading
import time
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

from clientutils._constants import DEFAULT_ID_PREFIX, ID_SUFFIX_ALPHABET, ID_SUFFIX_LENGTH

_SUFFIX_SPACE = len(ID_SUFFIX_ALPHABET) ** ID_SUFFIX_LENGTH


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


def _to_base36(value: int, width: int) -> str:
    digits: list[str] = []
    for _ in range(width):
        value, remainder = divmod(value, len(ID_SUFFIX_ALPHABET))
        digits.append(ID_SUFFIX_ALPHABET[remainder])
    return "".join(reversed(digits))


class GeneratedId(BaseModel):
    """Parsed form of an id produced by :meth:`IdGenerator.create`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    prefix: str
    timestamp: int = Field(..., ge=0)
    sequence: int = Field(..., ge=0)
    suffix: str

    @classmethod
    def parse(cls, text: str) -> GeneratedId:
        """Split *text* into its parts.

        The prefix may itself contain ``-``; the last three fields are
        taken from the right.

        Raises
        ------
        ValueError
            *text* does not have the expected shape.
        """
        parts = text.rsplit("-", 3)
        if len(parts) != 4:
            raise ValueError(f"not a generated id: {text!r}")
        prefix, timestamp, sequence, suffix = parts
        if not timestamp.isdigit() or not sequence.isdigit() or not suffix:
            raise ValueError(f"not a generated id: {text!r}")
        return cls(prefix=prefix, timestamp=int(timestamp), sequence=int(sequence), suffix=suffix)

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.timestamp, self.sequence)

    def __str__(self) -> str:
        return f"{self.prefix}-{self.timestamp}-{self.sequence}-{self.suffix}"


class IdGenerator:
    """Issue unique ids ordered by ``(timestamp, sequence)``.

    Parameters
    ----------
    default_prefix : str
        Prefix used when :meth:`create` is called without one.
    clock : callable or None
        Returns the current time in epoch milliseconds.
    random_below : callable or None
        ``random_below(n)`` returns an int in ``[0, n)``; used for the
        suffix.  Defaults to :func:`secrets.randbelow`.

    A clock that moves backwards is not compensated for: the sequence
    restarts at 0 for the earlier timestamp.
    """

    def __init__(
        self,
        default_prefix: str = DEFAULT_ID_PREFIX,
        *,
        clock: Callable[[], int] | None = None,
        random_below: Callable[[int], int] | None = None,
    ) -> None:
        self._default_prefix = default_prefix
        self._clock = clock if clock is not None else _now_ms
        self._random_below = random_below if random_below is not None else secrets.randbelow
        self._last_timestamp = 0
        self._sequence = 0
        self._lock = threading.Lock()

    def _next(self) -> tuple[int, int]:
        with self._lock:
            timestamp = self._clock()
            if timestamp == self._last_timestamp:
                self._sequence += 1
            else:
                self._sequence = 0
                self._last_timestamp = timestamp
            return timestamp, self._sequence

    def create(self, prefix: str | None = None) -> str:
        if prefix is None:
            prefix = self._default_prefix
        timestamp, sequence = self._next()
        suffix = _to_base36(self._random_below(_SUFFIX_SPACE), ID_SUFFIX_LENGTH)
        return f"{prefix}-{timestamp}-{sequence}-{suffix}"
