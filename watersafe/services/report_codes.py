"""Public report code generation: WS-<year>-<4 uppercase alphanumerics>."""
import logging
import secrets
import string
from typing import Callable, Sequence

from watersafe.services.errors import CodeGenerationExhausted

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits  # 36^4 suffixes
SUFFIX_LENGTH = 4


class ReportCodeGenerator:
    """Produces human-readable report codes and retries on collision."""

    def __init__(
        self,
        prefix: str = "WS",
        max_attempts: int = 5,
        choose: Callable[[Sequence[str]], str] = secrets.choice
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.prefix = prefix
        self.max_attempts = max_attempts
        self._choose = choose

    def generate(self, year: int) -> str:
        """Generate one candidate code, without any uniqueness check."""
        suffix = "".join(self._choose(CODE_ALPHABET) for _ in range(SUFFIX_LENGTH))
        return f"{self.prefix}-{year}-{suffix}"

    def issue(self, claim: Callable[[str], bool], year: int) -> str:
        """
        Generate codes until claim() accepts one, and return it.

        claim(code) must return False when the code is already taken, either
        by a pre-check or because the storage uniqueness constraint fired.

        Raises:
            CodeGenerationExhausted: every attempt collided
        """
        for attempt in range(1, self.max_attempts + 1):
            code = self.generate(year)
            if claim(code):
                return code
            logger.warning("Report code collision on %s (attempt %d/%d)", code, attempt, self.max_attempts)

        logger.critical("Report code generation exhausted after %d attempts", self.max_attempts)
        raise CodeGenerationExhausted(self.max_attempts)
