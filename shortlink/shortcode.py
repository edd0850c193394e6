"""Short code generation utilities."""

import random
import string
from typing import Optional

# Fixed system-wide: every persisted code is SHORT_CODE_LENGTH chars of BASE62_CHARS.
SHORT_CODE_LENGTH = 6
BASE62_CHARS = string.ascii_lowercase + string.ascii_uppercase + string.digits


class ShortCodeGenerator:
    """Generate random short code candidates.

    The generator never consults storage, so a candidate may collide with an
    existing code. Resolving collisions is up to the caller.
    """

    BASE62_CHARS = BASE62_CHARS

    def __init__(self, rng: Optional[random.Random] = None):
        """Initialize short code generator.

        Args:
            rng: Random source. Defaults to a private ``random.SystemRandom``;
                pass ``random.Random(seed)`` for reproducible codes.
        """
        self.rng = rng or random.SystemRandom()
        self.length = SHORT_CODE_LENGTH

    def generate(self) -> str:
        """Generate a random short code candidate.

        Returns:
            A SHORT_CODE_LENGTH character string over BASE62_CHARS
        """
        return "".join(self.rng.choices(self.BASE62_CHARS, k=self.length))

    @staticmethod
    def is_valid_format(code: str) -> bool:
        """Check if code could have been produced by the generator.

        Args:
            code: Code to validate

        Returns:
            True if valid format
        """
        if not isinstance(code, str) or len(code) != SHORT_CODE_LENGTH:
            return False
        return all(c in BASE62_CHARS for c in code)
