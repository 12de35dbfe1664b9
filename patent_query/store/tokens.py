"""Random anonymous tokens for entities created without a name."""

from __future__ import annotations

import random
import string
from collections.abc import Callable

DEFAULT_CHARSET = string.ascii_uppercase + string.ascii_lowercase + string.digits
DEFAULT_LENGTH = 5


class TokenGenerator:
    """Generate random tokens that do not collide with existing ones.

    Args:
        length: Number of characters per token.
        charset: Characters to draw from.
        rng: Random source, injectable for reproducible tests.
    """

    def __init__(
        self,
        length: int = DEFAULT_LENGTH,
        charset: str = DEFAULT_CHARSET,
        rng: random.Random | None = None,
    ) -> None:
        if length < 1:
            raise ValueError("Token length must be at least 1")
        if not charset:
            raise ValueError("Token charset must not be empty")
        self.length = length
        self.charset = charset
        self._rng = rng or random.Random()

    def random_token(self) -> str:
        return "".join(self._rng.choice(self.charset) for _ in range(self.length))

    def generate(self, exists: Callable[[str], bool] | None = None) -> str:
        """Return a token for which ``exists`` is false."""
        while True:
            token = self.random_token()
            if exists is None or not exists(token):
                return token
