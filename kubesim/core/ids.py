"""
Identifier and address generation

All randomness in the simulator goes through an IdGenerator so that tests
can pass a seeded instance and get the same ids, IPs and metrics each run.
"""

import random
from typing import Callable, Iterable, Optional

HEX_DIGITS = '0123456789abcdef'

# Lowercase alphanumerics without vowels, as used for generated pod names
NAME_SUFFIX_CHARS = 'bcdfghjklmnpqrstvwxz2456789'


class IdGenerator:
    """Random source for ids, addresses and simulated metrics"""

    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)

    def hex_id(self, length: int = 12) -> str:
        """Lowercase hex string of the given length"""
        return ''.join(self._random.choice(HEX_DIGITS) for _ in range(length))

    def suffix(self, length: int = 5) -> str:
        """Short suffix for generated object names"""
        return ''.join(self._random.choice(NAME_SUFFIX_CHARS) for _ in range(length))

    def uid(self) -> str:
        """Object uid in the 8-4-4-4-12 layout the API server uses"""
        return '-'.join(self.hex_id(n) for n in (8, 4, 4, 4, 12))

    def digest(self) -> str:
        return 'sha256:' + self.hex_id(64)

    def randint(self, low: int, high: int) -> int:
        return self._random.randint(low, high)

    def choice(self, items):
        return self._random.choice(items)

    def unique(self, make: Callable[[], str], taken: Iterable[str]) -> str:
        """
        Generate a value not present in ``taken``.

        Args:
            make: Zero-argument generator
            taken: Values currently in use

        Returns:
            A fresh value
        """
        taken = set(taken)
        value = make()
        while value in taken:
            value = make()
        return value
