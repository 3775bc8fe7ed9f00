"""
Search controller: mate pre-pass, iterative deepening and move selection.

Engine is the stable entry point hosts depend on (interface/uci.py,
web/app.py). One Engine lives for one game: it owns the MoveOrderer whose
killer and history tables carry over from move to move. Call new_game() to
reset them.

For each move, think():

1. Returns the "no move" sentinel (move=None) if the side to move has no
   legal moves. The result's terminal field says whether it is checkmate or
   stalemate. This is a normal outcome, not an error.
2. Returns the only legal move immediately if there is just one.
3. Runs a mate pre-pass: mate in 1, 2, ... up to max_mate_moves, bounded by
   a share of the move's time budget. A proven mate is played at once.
4. Runs a one-ply iteration, then iterative deepening from a phase- and
   time-aware starting depth up to the phase-aware ceiling. A new iteration
   starts only while elapsed time plus the safety margin is below the
   allocation. An iteration interrupted by the clock never replaces the last
   completed one.
5. Falls back to the first ordered legal move if no iteration completed.

Threading model:
    Single-threaded. The killer and history tables are not locked; a host
    that serves several threads must serialize calls to one Engine or give
    each thread its own.
"""

import logging
from dataclasses import dataclass
from typing import Callable

import chess

from chessbot.config import EngineConfig
from chessbot.evaluate import evaluate
from chessbot.ordering import MoveOrderer
from chessbot.score import Score
from chessbot.search import SearchContext, find_mate, search_root
from chessbot.timing import Clock, TimeBudget, allocate, initial_depth, max_depth

_log = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """
    Outcome of one think() call.

    Attributes:
        move:       Chosen move, or None when the side to move has no legal
                    moves.
        score:      Score of the move from the side-to-move's perspective.
        depth:      Deepest fully completed iteration (plies). For a mate
                    found by the pre-pass, the mate search depth.
        nodes:      Nodes visited across the pre-pass and all iterations.
        elapsed_ms: Wall-clock time spent thinking.
        mate:       True if the move was proven to force mate.
        terminal:   "checkmate" or "stalemate" when move is None.
    """

    move: chess.Move | None
    score: Score
    depth: int
    nodes: int
    elapsed_ms: float
    mate: bool = False
    terminal: str | None = None


class Engine:
    """
    Per-game search session.

    Attributes:
        config:   Search and time parameters.
        orderer:  Killer/history tables, persistent across moves.
        evaluate: Static evaluation function used at the leaves.
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        evaluate: Callable[[chess.Board], float] = evaluate,
    ) -> None:
        self.config = config or EngineConfig()
        self.orderer = MoveOrderer()
        self.evaluate = evaluate

    def new_game(self) -> None:
        """Clear the killer and history tables."""
        self.orderer.reset()

    def select_move(self, board: chess.Board, clock: Clock) -> chess.Move | None:
        """Return the move to play, or None if the game is over."""
        return self.think(board, clock).move

    def think(self, board: chess.Board, clock: Clock) -> SearchResult:
        """
        Choose a move for the side to move within the clock's budget.

        Args:
            board: The current position. Searched in place and restored
                   before returning.
            clock: Time source for this move.

        Returns:
            A SearchResult. Its move is always legal in *board*, or None for
            a terminal position.

        Raises:
            RuntimeError: If the board's move stack differs after the search,
                          i.e. a push was not matched by a pop.
        """
        budget = allocate(clock, self.config)
        legal = list(board.legal_moves)

        if not legal:
            if board.is_check():
                return SearchResult(None, Score.loss(0), 0, 0, budget.elapsed(clock), terminal="checkmate")
            return SearchResult(None, Score.DRAW, 0, 0, budget.elapsed(clock), terminal="stalemate")

        if len(legal) == 1:
            return SearchResult(legal[0], Score.DRAW, 0, 0, budget.elapsed(clock))

        stack_size = len(board.move_stack)
        result = self._search(board, clock, budget, legal)
        if len(board.move_stack) != stack_size:
            raise RuntimeError(
                f"move stack changed during search: {stack_size} -> {len(board.move_stack)}"
            )

        overrun = budget.overrun_ms(clock)
        if overrun > budget.margin_ms:
            _log.warning(
                "time overrun: %.0f ms past a %.0f ms allocation (depth %d)",
                overrun,
                budget.allocated_ms,
                result.depth,
            )
        return result

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def _context(self, clock: Clock, budget: TimeBudget) -> SearchContext:
        return SearchContext(
            orderer=self.orderer,
            clock=clock,
            budget=budget,
            evaluate=self.evaluate,
            quiescence_depth=self.config.quiescence_depth,
        )

    def _search(
        self,
        board: chess.Board,
        clock: Clock,
        budget: TimeBudget,
        legal: list[chess.Move],
    ) -> SearchResult:
        nodes = 0

        # --- Mate pre-pass ---
        mate_ctx = self._context(clock, budget.share(self.config.mate_time_share))
        for moves in range(1, self.config.max_mate_moves + 1):
            mate_move = find_mate(board, moves, mate_ctx)
            if mate_move is not None:
                _log.info("mate in %d found: %s", moves, mate_move.uci())
                return SearchResult(
                    mate_move,
                    Score.win(2 * moves - 1),
                    2 * moves - 1,
                    mate_ctx.node_count,
                    budget.elapsed(clock),
                    mate=True,
                )
            if mate_ctx.aborted:
                _log.debug("mate pre-pass stopped at mate in %d", moves)
                break
        nodes += mate_ctx.node_count

        # --- Iterative deepening ---
        start = initial_depth(board, clock, self.config, budget.panic)
        ceiling = max_depth(board, self.config)
        best_move: chess.Move | None = None
        best_score = Score.DRAW
        completed = 0

        # A one-ply iteration always runs first, so an interrupted deeper
        # iteration still leaves a searched move behind.
        depths = [1] + list(range(max(start, 2), ceiling + 1))

        for depth in depths:
            if not budget.may_deepen(clock):
                break
            ctx = self._context(clock, budget)
            move, score = search_root(board, depth, ctx, first=best_move)
            nodes += ctx.node_count

            if ctx.aborted or move is None:
                # Interrupted: keep the last completed iteration's result.
                _log.debug("depth %d interrupted after %d nodes", depth, ctx.node_count)
                break

            best_move, best_score, completed = move, score, depth
            _log.debug(
                "depth %d: %s %s nodes %d time %.0f ms",
                depth,
                move.uci(),
                score,
                nodes,
                budget.elapsed(clock),
            )
            if score.is_win:
                break

        if best_move is None:
            best_move = self.orderer.order(board, legal, start)[0]
            _log.warning(
                "no search iteration completed in %.0f ms; falling back to %s",
                budget.allocated_ms,
                best_move.uci(),
            )

        return SearchResult(
            best_move,
            best_score,
            completed,
            nodes,
            budget.elapsed(clock),
            mate=best_score.is_win,
        )
