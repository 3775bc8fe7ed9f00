"""
Search scores: a finite pawn-unit evaluation or a forced outcome.

Using float infinities for "forced win" and "forced loss" is fragile: every
forced outcome compares equal to every other one, so the search cannot tell a
mate in 1 from a mate in 3. Score is instead a tagged value:

    Score.of(0.35)     finite evaluation, 0.35 pawns for the side to move
    Score.win(3)       the side to move mates in 3 plies
    Score.loss(0)      the side to move is checkmated right now

The total order is explicit: any forced win ranks above any finite score,
which ranks above any forced loss. Among wins, fewer plies is better; among
losses, more plies is better (being mated later leaves the opponent more
chances to go wrong).

Two extra values, Score.INFINITY and Score.NEG_INFINITY, serve as the initial
alpha-beta window. They rank strictly above and below every score a search
can return.

Negation follows the negamax convention: -Score.win(n) == Score.loss(n).
When a child's score is backed up one level, ply_up() adds the ply that was
just played, so mate distances grow naturally with depth.
"""

import functools
from dataclasses import dataclass
from enum import IntEnum


class Outcome(IntEnum):
    """Whether a score is a forced result for the side to move."""

    LOSS = -1
    NONE = 0
    WIN = 1


# Plies value reserved for the window bounds.
_UNBOUNDED = -1


@functools.total_ordering
@dataclass(frozen=True)
class Score:
    """
    Tagged search score from the perspective of the side to move.

    Attributes:
        value:   Pawn-unit evaluation. Only meaningful when outcome is NONE.
        outcome: WIN / LOSS for forced results, NONE for finite scores.
        plies:   Distance to the forced result in half-moves.
    """

    value: float = 0.0
    outcome: Outcome = Outcome.NONE
    plies: int = 0

    # -- constructors ------------------------------------------------------

    @classmethod
    def of(cls, value: float) -> "Score":
        return cls(value=float(value))

    @classmethod
    def win(cls, plies: int) -> "Score":
        return cls(outcome=Outcome.WIN, plies=plies)

    @classmethod
    def loss(cls, plies: int) -> "Score":
        return cls(outcome=Outcome.LOSS, plies=plies)

    # -- ordering ----------------------------------------------------------

    def _key(self) -> tuple:
        if self.outcome == Outcome.WIN:
            return (1, -self.plies)
        if self.outcome == Outcome.LOSS:
            return (-1, self.plies)
        return (0, self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Score):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "Score") -> bool:
        if not isinstance(other, Score):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    # -- arithmetic ----------------------------------------------------------

    def __neg__(self) -> "Score":
        if self.outcome == Outcome.NONE:
            return Score(value=-self.value)
        return Score(outcome=Outcome(-self.outcome), plies=self.plies)

    def ply_up(self) -> "Score":
        """Return this score as seen one ply closer to the root."""
        if self.outcome == Outcome.NONE or self.plies == _UNBOUNDED:
            return self
        return Score(outcome=self.outcome, plies=self.plies + 1)

    # -- queries -------------------------------------------------------------

    @property
    def is_win(self) -> bool:
        return self.outcome == Outcome.WIN and self.plies != _UNBOUNDED

    @property
    def is_loss(self) -> bool:
        return self.outcome == Outcome.LOSS and self.plies != _UNBOUNDED

    @property
    def is_mate(self) -> bool:
        return self.is_win or self.is_loss

    @property
    def mate_in(self) -> int | None:
        """
        Signed distance to mate in full moves, UCI style.

        Positive when the side to move delivers mate, negative when it gets
        mated, None for finite scores.
        """
        if self.is_win:
            return (self.plies + 1) // 2
        if self.is_loss:
            return -(self.plies // 2)
        return None

    def __str__(self) -> str:
        if self.outcome != Outcome.NONE and self.plies == _UNBOUNDED:
            return "+inf" if self.outcome == Outcome.WIN else "-inf"
        if self.is_mate:
            return f"mate {self.mate_in}"
        return f"cp {round(self.value * 100)}"


Score.DRAW = Score.of(0.0)
Score.INFINITY = Score(outcome=Outcome.WIN, plies=_UNBOUNDED)
Score.NEG_INFINITY = Score(outcome=Outcome.LOSS, plies=_UNBOUNDED)
