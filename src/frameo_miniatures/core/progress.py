"""Progress sinks notified once per completed file."""

import sys
from typing import Optional

from tqdm import tqdm


class NullProgress:
    """Progress sink that reports nothing."""

    def advance(self, count: int = 1) -> None:
        pass

    def close(self) -> None:
        pass


class TqdmProgress:
    """Indeterminate progress bar on stderr; the total is unknown while discovery runs."""

    def __init__(self, description: str = "Processing", disable: Optional[bool] = None):
        self._bar = tqdm(
            total=None,
            desc=description,
            unit="file",
            file=sys.stderr,
            dynamic_ncols=True,
            mininterval=0.065,
            disable=disable,
        )

    def advance(self, count: int = 1) -> None:
        self._bar.update(count)

    def close(self) -> None:
        self._bar.close()
