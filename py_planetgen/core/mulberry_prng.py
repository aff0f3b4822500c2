"""
Python implementation of the Mulberry32 PRNG used for planet generation.

A single instance is threaded through every pipeline stage so that the same
seed always reproduces the same planet. The order in which stages consume
numbers is part of that contract.
"""

from typing import MutableSequence, Optional, Union

DEFAULT_SEED = 19831108


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


def _int32(n):
    """Convert to signed 32-bit integer."""
    n = _uint32(n)
    return n - 0x100000000 if n & 0x80000000 else n


def _imul(a, b):
    """32-bit integer multiplication (wrapping), returned unsigned."""
    return _uint32(_uint32(a) * _uint32(b))


def hash_seed(seed: Union[str, int, float, None]) -> int:
    """
    Turn a seed of any supported type into a positive Mulberry32 state.

    Strings are hashed with the 31-multiplier string hash (wrapped to 32
    bits), numbers are floored. Zero and unsupported types fall back to
    DEFAULT_SEED.
    """
    if isinstance(seed, str):
        numeric = 0
        for char in seed:
            numeric = _int32(numeric * 31 + ord(char))
    elif isinstance(seed, (int, float)) and not isinstance(seed, bool):
        numeric = int(seed // 1)
    else:
        numeric = DEFAULT_SEED

    numeric = _uint32(abs(numeric))
    return numeric if numeric != 0 else DEFAULT_SEED


class SeededRandom:
    """
    Mulberry32 generator with the helpers the pipeline needs.

    Mirrors the API of the game client's random service: ``next_float``,
    ``next_int`` (inclusive bounds), ``shuffle`` (Fisher-Yates, in place)
    and ``current_seed``.
    """

    def __init__(self, seed: Optional[Union[str, int]] = None):
        self.seed_input = seed
        self._seed = hash_seed(seed)
        self._state = self._seed
        self.call_count = 0

    @property
    def current_seed(self) -> int:
        """The processed numeric seed this generator was created with."""
        return self._seed

    def _next_uint32(self) -> int:
        self._state = _uint32(self._state + 0x6D2B79F5)
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= _uint32(t + _imul(t ^ (t >> 7), t | 61))
        return _uint32(t ^ (t >> 14))

    def next_float(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        return self._next_uint32() / 4294967296.0  # 2^32

    def next_int(self, min_value: int, max_value: int) -> int:
        """Generate a random integer in [min_value, max_value] (inclusive)."""
        return int(self.next_float() * (max_value - min_value + 1)) + min_value

    def shuffle(self, seq: MutableSequence) -> None:
        """Shuffle ``seq`` in place using Fisher-Yates."""
        for i in range(len(seq) - 1, 0, -1):
            j = self.next_int(0, i)
            seq[i], seq[j] = seq[j], seq[i]
