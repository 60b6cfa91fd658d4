"""Injectable source of randomness for battles."""

from __future__ import annotations

from random import Random
from typing import Protocol


class RandomSource(Protocol):
    """Anything that yields uniform floats in ``[0, 1)``.

    ``random.Random`` satisfies this protocol, as does :class:`BattleRng`.
    """

    def random(self) -> float: ...


class BattleRng:
    """Wrapper around ``random.Random`` with the draws the engine needs.

    Every probabilistic check in a battle goes through one instance, so a
    fixed seed replays the same battle.
    """

    def __init__(self, seed: int | None = None, source: RandomSource | None = None) -> None:
        self._source: RandomSource = source if source is not None else Random(seed)

    def random(self) -> float:
        """Return the next float in ``[0.0, 1.0)``."""
        return self._source.random()

    def chance(self, probability: float) -> bool:
        """Single Bernoulli trial: True with the given probability."""
        if probability <= 0:
            return False
        return self._source.random() < probability

    def coin_flip(self) -> bool:
        return self._source.random() < 0.5


def ensure_rng(rng: BattleRng | RandomSource | None) -> BattleRng:
    """Coerce ``None``, a ``random.Random`` or a ``BattleRng`` into a ``BattleRng``."""
    if isinstance(rng, BattleRng):
        return rng
    if rng is None:
        return BattleRng()
    return BattleRng(source=rng)
