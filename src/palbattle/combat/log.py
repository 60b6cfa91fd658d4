"""Per-battle, human-readable combat log."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

logger = logging.getLogger("palbattle.combat")


class CombatLogger:
    """Ordered battle log lines for a single battle.

    One instance per battle; never shared. Lines added while
    :meth:`suppressed` is active are discarded, which lets the engine run
    silent "what would this attack have done" simulations.
    """

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._suppress_depth = 0

    def add(self, line: str) -> None:
        if self._suppress_depth:
            return
        self._lines.append(line)

    def add_multiple(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.add(line)

    @contextmanager
    def suppressed(self) -> Iterator[CombatLogger]:
        """Discard every line added inside the ``with`` block."""
        self._suppress_depth += 1
        try:
            yield self
        finally:
            self._suppress_depth -= 1

    @property
    def is_suppressed(self) -> bool:
        return self._suppress_depth > 0

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def clear(self) -> None:
        logger.debug("Clearing combat log (count=%d)", len(self._lines))
        self._lines.clear()

    def __len__(self) -> int:
        return len(self._lines)
