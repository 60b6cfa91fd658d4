"""
Pytest configuration and fixtures for palbattle tests.
"""

import sys
from collections.abc import Iterable
from pathlib import Path

import pytest

# Add src directory to Python path to allow importing palbattle
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from palbattle.catalog import GameCatalog, default_catalog  # noqa: E402
from palbattle.models import Combatant, Stats  # noqa: E402
from palbattle.rng import BattleRng  # noqa: E402


class ScriptedSource:
    """Random source that replays queued floats, then a constant default.

    ``draws`` counts every value handed out, which lets tests assert that a
    check did (or did not) consume a roll.
    """

    def __init__(self, values: Iterable[float] = (), default: float = 0.5) -> None:
        self.values = list(values)
        self.default = default
        self.draws = 0

    def random(self) -> float:
        self.draws += 1
        if self.values:
            return self.values.pop(0)
        return self.default


def scripted_rng(*values: float, default: float = 0.5) -> BattleRng:
    """BattleRng over a ScriptedSource (0.5 once the script runs out)."""
    return BattleRng(source=ScriptedSource(values, default))


@pytest.fixture
def catalog() -> GameCatalog:
    return default_catalog()


@pytest.fixture
def rng() -> BattleRng:
    """Always rolls 0.5: a 90% hit lands, a 25% proc fails, a coin flip picks the second side."""
    return scripted_rng()


@pytest.fixture
def source() -> ScriptedSource:
    return ScriptedSource()


def make_combatant(name: str = "Pal", creature_type: str = "Beast", **stats) -> Combatant:
    """A combatant with no equipment or skills and the given stat overrides."""
    return Combatant(name=name, creature_type=creature_type, stats=Stats(**stats))
