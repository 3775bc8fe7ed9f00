"""Shared fixtures: controllable clocks and budgets that never expire."""

import pytest

from chessbot.ordering import MoveOrderer
from chessbot.search import SearchContext
from chessbot.timing import GameClock, TimeBudget


class FakeTime:
    """Monotonic time source (seconds) advanced by hand."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000


def unlimited_context(evaluate=None, quiescence_depth=4) -> SearchContext:
    """A SearchContext whose budget cannot run out."""
    clock = GameClock(remaining_ms=1e12, total_ms=1e12)
    budget = TimeBudget(
        allocated_ms=1e12,
        panic=False,
        started_ms=0.0,
        cutoff_ms=0.0,
        margin_ms=0.0,
    )
    ctx = SearchContext(
        orderer=MoveOrderer(),
        clock=clock,
        budget=budget,
        quiescence_depth=quiescence_depth,
    )
    if evaluate is not None:
        ctx.evaluate = evaluate
    return ctx


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def ctx() -> SearchContext:
    return unlimited_context()
