"""Injectable time source. Every timestamp in cramdeck is epoch milliseconds."""

import time
from collections.abc import Callable

Clock = Callable[[], int]


def system_clock() -> int:
    return int(time.time() * 1000)
