"""
Tracking code generation: "DHL" + 6 random digits, retried while the code is already taken.
"""
import logging
import random
from collections.abc import Callable

from shipment_tracker.errors import TrackingCodeExhaustedError

logger = logging.getLogger(__name__)

SUFFIX_MIN = 100000
SUFFIX_MAX = 999999
TRACKING_CODE_PREFIX = "DHL"
DEFAULT_MAX_ATTEMPTS = 10


class TrackingCodeGenerator:
    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        rng: random.Random | None = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self._rng = rng or random.Random()

    def generate(self, exists: Callable[[str], bool]) -> str:
        """
        Return a code for which exists(code) is False.
        Raises TrackingCodeExhaustedError once max_attempts draws have all collided.
        """
        for attempt in range(1, self.max_attempts + 1):
            code = f"{TRACKING_CODE_PREFIX}{self._rng.randint(SUFFIX_MIN, SUFFIX_MAX)}"
            if not exists(code):
                return code
            logger.debug("Tracking code %s already in use (attempt %d/%d)", code, attempt, self.max_attempts)
        raise TrackingCodeExhaustedError(self.max_attempts)
