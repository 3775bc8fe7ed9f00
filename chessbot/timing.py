"""
Clock abstraction and time-management policy.

The engine never reads the wall clock directly. It asks a Clock for three
durations (all in milliseconds):

    remaining_ms  time left on the engine's game clock
    elapsed_ms    time spent on the current move so far
    total_ms      the engine's clock at the start of the game

From those, the policy derives a TimeBudget for one move:

- Allocation: a small fraction of the remaining time (2%, or 1% in panic).
- Panic mode: entered once the remaining time drops to 25% of the game's
  initial time. Panic shrinks the allocation, the starting depth and the
  in-search cutoff threshold.
- Depth: endgames (few pieces left) start deeper and may go deeper, because
  each extra ply costs far less when the branching factor is low.
"""

import time
from dataclasses import dataclass, replace
from typing import Callable, Protocol

import chess

from chessbot.config import EngineConfig
from chessbot.constants import MEDIUM_TIME_FRACTION, SHALLOW_TIME_FRACTION
from chessbot.evaluate import is_endgame


class Clock(Protocol):
    """Time source consumed by the engine. All values are milliseconds."""

    @property
    def remaining_ms(self) -> float: ...

    @property
    def elapsed_ms(self) -> float: ...

    @property
    def total_ms(self) -> float: ...


class GameClock:
    """
    Clock backed by time.monotonic(), started when the move begins.

    The host creates one per move from the game clock it tracks (UCI wtime /
    btime, a web request's time allowance, ...). Remaining time counts down
    as the search runs.

    Args:
        remaining_ms: Engine time left when the move starts.
        total_ms:     Engine time at the start of the game. Defaults to
                      remaining_ms, i.e. "this is the first move".
        now:          Monotonic time source in seconds, replaceable in tests.
    """

    def __init__(
        self,
        remaining_ms: float,
        total_ms: float | None = None,
        now: Callable[[], float] = time.monotonic,
    ) -> None:
        self._remaining_at_start = float(remaining_ms)
        self._total_ms = float(total_ms) if total_ms is not None else float(remaining_ms)
        self._now = now
        self._started = now()

    @property
    def elapsed_ms(self) -> float:
        return (self._now() - self._started) * 1000

    @property
    def remaining_ms(self) -> float:
        return max(0.0, self._remaining_at_start - self.elapsed_ms)

    @property
    def total_ms(self) -> float:
        return self._total_ms

    def __repr__(self) -> str:
        return (
            f"GameClock(remaining_ms={self.remaining_ms:.0f}, "
            f"elapsed_ms={self.elapsed_ms:.0f}, total_ms={self._total_ms:.0f})"
        )


@dataclass(frozen=True)
class TimeBudget:
    """
    Time allowance for one move.

    Attributes:
        allocated_ms: Milliseconds the move may use.
        panic:        Whether the game clock is in panic mode.
        started_ms:   Clock.elapsed_ms when thinking began (deadline anchor).
        cutoff_ms:    Remaining game time at which the search stops recursing.
        margin_ms:    Safety margin kept free when starting a new iteration.
    """

    allocated_ms: float
    panic: bool
    started_ms: float
    cutoff_ms: float
    margin_ms: float

    def elapsed(self, clock: Clock) -> float:
        return clock.elapsed_ms - self.started_ms

    def may_deepen(self, clock: Clock) -> bool:
        """True if there is room to start another iteration."""
        return self.elapsed(clock) + self.margin_ms < self.allocated_ms

    def expired(self, clock: Clock) -> bool:
        """True once the allocation is spent or the game clock is nearly empty."""
        return self.elapsed(clock) >= self.allocated_ms or clock.remaining_ms <= self.cutoff_ms

    def overrun_ms(self, clock: Clock) -> float:
        return max(0.0, self.elapsed(clock) - self.allocated_ms)

    def share(self, fraction: float) -> "TimeBudget":
        """A budget with the same anchor and a fraction of the allocation."""
        return replace(self, allocated_ms=self.allocated_ms * fraction)


def is_panic(clock: Clock, config: EngineConfig) -> bool:
    return clock.remaining_ms <= clock.total_ms * config.panic_time_fraction


def allocate(clock: Clock, config: EngineConfig) -> TimeBudget:
    """Compute the TimeBudget for the move starting now."""
    panic = is_panic(clock, config)
    fraction = config.panic_move_time_fraction if panic else config.move_time_fraction
    return TimeBudget(
        allocated_ms=clock.remaining_ms * fraction,
        panic=panic,
        started_ms=clock.elapsed_ms,
        cutoff_ms=config.panic_time_cutoff_ms if panic else config.time_cutoff_ms,
        margin_ms=config.safety_margin_ms,
    )


def max_depth(board: chess.Board, config: EngineConfig) -> int:
    """Iterative-deepening ceiling; endgames may search deeper."""
    if is_endgame(board):
        return config.max_depth + config.endgame_depth_bonus
    return config.max_depth


def initial_depth(board: chess.Board, clock: Clock, config: EngineConfig, panic: bool) -> int:
    """
    Starting depth for iterative deepening.

    The average time available per remaining move is estimated from the move
    number. Little time per move starts shallower; an endgame starts deeper.
    """
    moves_left = max(
        config.min_moves_remaining,
        config.expected_game_moves - board.fullmove_number + 1,
    )
    average_ms = clock.remaining_ms / moves_left

    depth = config.base_depth
    if average_ms < clock.total_ms * SHALLOW_TIME_FRACTION:
        depth = min(depth, 2)
    elif average_ms < clock.total_ms * MEDIUM_TIME_FRACTION:
        depth = min(depth, 3)

    if panic:
        depth -= 1
    if is_endgame(board):
        depth += config.endgame_depth_bonus

    return max(1, min(depth, max_depth(board, config)))
