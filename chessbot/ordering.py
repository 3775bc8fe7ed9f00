"""
Move ordering: killer moves, MVV-LVA capture ranking and the history heuristic.

Alpha-beta prunes more when the best move is searched first. The ordering is
built from three independent rankings, applied in priority order:

1. Killer moves: quiet moves that caused a beta cutoff at the same depth in a
   sibling branch. At most two per depth, most recent first.
2. Captures by MVV-LVA (Most Valuable Victim - Least Valuable Attacker):
   PxQ before QxP.
3. Everything else by history count: how often a move has caused a cutoff
   anywhere in the tree.

Killer and history tables persist for the whole game. They are owned by a
MoveOrderer, which the Engine creates once per game. The tables only affect
ordering, never correctness: a search with empty tables returns the same
score, just more slowly.
"""

from collections import Counter
from typing import Iterable

import chess

from chessbot.constants import KING_VALUE, PIECE_VALUES, QUEEN_VALUE

# Number of killer slots kept per depth.
KILLER_SLOTS = 2

# MVV-LVA score of a non-capture: below every victim - attacker difference.
NON_CAPTURE_SCORE = -QUEEN_VALUE - KING_VALUE - 1.0


def mvv_lva(board: chess.Board, move: chess.Move) -> float:
    """
    MVV-LVA score of a move: victim value minus attacker value.

    En passant captures a pawn that is not on move.to_square, so the victim
    defaults to a pawn when the target square is empty. Non-captures score
    NON_CAPTURE_SCORE, so they sort after every capture.

    Args:
        board: Position before the move is played.
        move:  The move to score.

    Returns:
        Victim value minus attacker value in pawn units.
    """
    if not board.is_capture(move):
        return NON_CAPTURE_SCORE
    attacker = board.piece_type_at(move.from_square)
    victim = board.piece_type_at(move.to_square)
    attacker_val = PIECE_VALUES.get(attacker, 0.0) if attacker else 0.0
    victim_val = PIECE_VALUES.get(victim, 0.0) if victim else PIECE_VALUES[chess.PAWN]
    return victim_val - attacker_val


class KillerTable:
    """
    Up to KILLER_SLOTS quiet cutoff moves per search depth.

    Each depth behaves as a small FIFO: a new killer goes into slot 0 and
    pushes the old slot 0 into slot 1. A move never occupies both slots.
    """

    def __init__(self) -> None:
        self._slots: dict[int, list[chess.Move]] = {}

    def killers(self, depth: int) -> list[chess.Move]:
        return list(self._slots.get(depth, ()))

    def add(self, depth: int, move: chess.Move) -> None:
        slots = self._slots.setdefault(depth, [])
        if slots and slots[0] == move:
            return
        if move in slots:
            slots.remove(move)
        slots.insert(0, move)
        del slots[KILLER_SLOTS:]

    def clear(self) -> None:
        self._slots.clear()

    def __len__(self) -> int:
        return sum(len(slots) for slots in self._slots.values())


class HistoryTable:
    """Monotonically increasing cutoff counters keyed by move."""

    def __init__(self) -> None:
        self._counts: Counter = Counter()

    def count(self, move: chess.Move) -> int:
        return self._counts[move]

    def increment(self, move: chess.Move) -> None:
        self._counts[move] += 1

    def clear(self) -> None:
        self._counts.clear()

    def __len__(self) -> int:
        return len(self._counts)


class MoveOrderer:
    """
    Per-game move ordering state.

    Attributes:
        killers: KillerTable indexed by remaining depth.
        history: HistoryTable of quiet-move cutoff counts.
    """

    def __init__(self) -> None:
        self.killers = KillerTable()
        self.history = HistoryTable()

    def reset(self) -> None:
        """Forget all killers and history, e.g. at the start of a new game."""
        self.killers.clear()
        self.history.clear()

    def order(
        self,
        board: chess.Board,
        moves: Iterable[chess.Move],
        depth: int,
        first: chess.Move | None = None,
    ) -> list[chess.Move]:
        """
        Order moves for search at a node with *depth* plies remaining.

        Args:
            board: Position the moves belong to. Not modified.
            moves: Legal moves at this node, in generator order.
            depth: Remaining depth, used to look up killers.
            first: Optional move to search before everything else (the best
                   root move from the previous iteration). Ignored if it is
                   not among *moves*.

        Returns:
            A new list holding every move exactly once.
        """
        moves = list(moves)
        head: list[chess.Move] = []
        if first is not None and first in moves:
            head.append(first)

        for killer in self.killers.killers(depth):
            # Killers come from sibling branches and may be illegal here.
            if killer in moves and killer not in head:
                head.append(killer)

        captures = []
        quiet = []
        for move in moves:
            if move in head:
                continue
            if board.is_capture(move):
                captures.append(move)
            else:
                quiet.append(move)

        # sorted() is stable, so ties keep generator order.
        captures.sort(key=lambda m: mvv_lva(board, m), reverse=True)
        quiet.sort(key=self.history.count, reverse=True)
        return head + captures + quiet

    def order_captures(self, board: chess.Board, moves: Iterable[chess.Move]) -> list[chess.Move]:
        """Order capturing moves by MVV-LVA, best first."""
        return sorted(moves, key=lambda m: mvv_lva(board, m), reverse=True)

    def record_cutoff(self, board: chess.Board, move: chess.Move, depth: int) -> None:
        """
        Learn from a beta cutoff caused by *move* at *depth*.

        Captures are skipped: MVV-LVA already searches them early, and a
        capture killer would just duplicate that ranking.

        Args:
            board: Position the move was played from (move not on the stack).
            move:  The move that produced the cutoff.
            depth: Remaining depth at the cutting node.
        """
        if board.is_capture(move):
            return
        self.killers.add(depth, move)
        self.history.increment(move)
