from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display with tqdm (TTY only).

One bar over the loads of a batch (sheets and boundaries). In non-TTY
environments (CI, notebooks piping stdout) the bar is disabled to avoid ANSI
control sequence spam.
"""

__all__ = [
    "LoadProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class LoadProgress:
    """Progress tracker for a batch of concurrent loads.

    ``finish`` may be called from worker threads; tqdm serializes updates
    with its own lock.
    """

    def __init__(self, total: int, *, description: str = "Loading data") -> None:
        self.total = total
        self.description = description
        self.done = 0
        self.failed = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total,
                desc=description,
                unit="file",
                leave=False,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def finish(self, label: str, success: bool = True) -> None:
        self.done += 1
        if not success:
            self.failed += 1
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(last=label, failed=self.failed)
            self.pbar.update(1)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> LoadProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
