"""Product code generation."""

import random
import time
from collections.abc import Callable

CODE_PREFIX = "PRD"


def new_code() -> str:
    """Timestamp-plus-random token, e.g. ``PRD1718000000000042``."""
    return f"{CODE_PREFIX}{int(time.time() * 1000)}{random.randint(0, 999)}"


def make_unique_code(is_taken: Callable[[str], bool]) -> str:
    """Draw codes until one is not taken."""
    while True:
        code = new_code()
        if not is_taken(code):
            return code
