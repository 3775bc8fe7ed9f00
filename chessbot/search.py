"""
Search core: negamax alpha-beta, quiescence search and mate search.

Every function here takes a python-chess Board and mutates it only through
push()/pop() pairs, so the board is back in its original state whenever a call
returns. Scores are chessbot.score.Score values from the perspective of the
side to move at the node (negamax convention): a child's score is negated by
the caller and moved one ply closer to the root with ply_up().

Time is handled cooperatively. Before a node expands its move list it polls
the clock through SearchContext.out_of_time(). Once the budget is spent the
flag latches, every node still on the stack stops expanding and returns a
leaf evaluation, and the Engine discards the interrupted iteration. No
exception is used for cancellation.

Three searches share the same recursive shape:

    alpha_beta   full-width search to a nominal depth, quiescence at leaves
    quiescence   captures only, stand-pat cutoff, bounded depth
    mate_search  full-width, no evaluation: only proves or refutes mate
"""

from dataclasses import dataclass
from typing import Callable

import chess

from chessbot.constants import QUIESCENCE_DEPTH
from chessbot.evaluate import evaluate
from chessbot.ordering import MoveOrderer
from chessbot.score import Score
from chessbot.timing import Clock, TimeBudget


@dataclass
class SearchContext:
    """
    Per-iteration search state passed down the recursion.

    Attributes:
        orderer:          Per-game move ordering (killer and history tables).
        clock:            Time source polled at node entry.
        budget:           Time budget for this search.
        evaluate:         Static evaluation, side-to-move perspective.
        quiescence_depth: Capture plies searched past the horizon.
        node_count:       Nodes visited (alpha-beta, quiescence and mate).
        aborted:          Latched once the budget expires. A search that ends
                          with aborted set returned an unreliable result.
    """

    orderer: MoveOrderer
    clock: Clock
    budget: TimeBudget
    evaluate: Callable[[chess.Board], float] = evaluate
    quiescence_depth: int = QUIESCENCE_DEPTH
    node_count: int = 0
    aborted: bool = False

    def out_of_time(self) -> bool:
        if not self.aborted and self.budget.expired(self.clock):
            self.aborted = True
        return self.aborted


def quiescence(
    board: chess.Board,
    alpha: Score,
    beta: Score,
    depth_left: int,
    ctx: SearchContext,
) -> Score:
    """
    Quiescence search: resolves pending captures past the search horizon.

    The static evaluation of a position in the middle of an exchange is
    misleading: a queen that is about to be recaptured still counts as
    material. Quiescence keeps searching captures until the position is quiet.

    Stand-pat: the side to move can always decline to capture, so the static
    evaluation is a lower bound. If it already reaches beta the node fails
    high immediately.

    Args:
        board:      Current position. Modified in-place via push/pop.
        alpha:      Lower bound of the search window.
        beta:       Upper bound of the search window.
        depth_left: Remaining capture plies. At 0, the stand-pat score is
                    returned without looking at captures.
        ctx:        Search context.

    Returns:
        Score from the perspective of the side to move.
    """
    ctx.node_count += 1

    # A capture sequence can end in mate; the static evaluation cannot see it.
    if board.is_check() and board.is_checkmate():
        return Score.loss(0)

    stand_pat = Score.of(ctx.evaluate(board))
    if stand_pat >= beta:
        return beta
    if stand_pat > alpha:
        alpha = stand_pat

    if depth_left <= 0 or ctx.out_of_time():
        return stand_pat

    captures = [m for m in board.legal_moves if board.is_capture(m)]
    for move in ctx.orderer.order_captures(board, captures):
        board.push(move)
        score = -quiescence(board, -beta, -alpha, depth_left - 1, ctx).ply_up()
        board.pop()

        if score >= beta:
            return beta
        if score > alpha:
            alpha = score

    return alpha


def alpha_beta(
    board: chess.Board,
    depth: int,
    alpha: Score,
    beta: Score,
    ctx: SearchContext,
) -> Score:
    """
    Fail-hard negamax search with alpha-beta pruning.

    Args:
        board: Current position. Modified in-place via push/pop and always
               restored on return.
        depth: Remaining depth in plies. At 0 the node drops into quiescence.
        alpha: Lower bound of the window (best score already guaranteed).
        beta:  Upper bound of the window (best score the opponent allows).
        ctx:   Search context.

    Returns:
        A score clamped to [alpha, beta] from the perspective of the side to
        move. On a cutoff exactly beta is returned.

    Chess programming context:
        Checkmate is scored Score.loss(0) for the side that is mated. Each
        level above adds a ply, so the root sees Score.win(n) and prefers
        the shortest mate.

        A quiet move that causes a cutoff is reported to the MoveOrderer,
        which tries it early in sibling nodes at the same depth (killer) and
        everywhere else (history).
    """
    ctx.node_count += 1

    # Terminal node: checkmate, stalemate, insufficient material, 75-move
    # rule or fivefold repetition. All non-checkmate endings are draws.
    if board.is_game_over():
        if board.is_checkmate():
            return Score.loss(0)
        return Score.DRAW

    if depth <= 0:
        return quiescence(board, alpha, beta, ctx.quiescence_depth, ctx)

    # Out of time: evaluate as a leaf instead of expanding further.
    if ctx.out_of_time():
        return Score.of(ctx.evaluate(board))

    for move in ctx.orderer.order(board, board.legal_moves, depth):
        board.push(move)
        score = -alpha_beta(board, depth - 1, -beta, -alpha, ctx).ply_up()
        board.pop()

        if score >= beta:
            ctx.orderer.record_cutoff(board, move, depth)
            return beta
        if score > alpha:
            alpha = score
        if ctx.aborted:
            break

    return alpha


def mate_search(
    board: chess.Board,
    plies: int,
    alpha: Score,
    beta: Score,
    ctx: SearchContext,
) -> Score:
    """
    Alpha-beta search that only distinguishes checkmate from everything else.

    No material is evaluated: a checkmated side to move scores
    Score.loss(0), any other leaf (depth exhausted, stalemate, draw) scores
    0. A root call that returns a forced win therefore proves mate within
    *plies* half-moves whatever the opponent plays.
    """
    ctx.node_count += 1

    if board.is_checkmate():
        return Score.loss(0)
    if plies <= 0 or board.is_game_over():
        return Score.DRAW
    if ctx.out_of_time():
        return Score.DRAW

    for move in board.legal_moves:
        board.push(move)
        score = -mate_search(board, plies - 1, -beta, -alpha, ctx).ply_up()
        board.pop()

        if score >= beta:
            return beta
        if score > alpha:
            alpha = score
        if ctx.aborted:
            break

    return alpha


def find_mate(board: chess.Board, moves: int, ctx: SearchContext) -> chess.Move | None:
    """
    Find a move that forces checkmate within *moves* of our own moves.

    Mate in N full moves is the root move followed by 2N-1 plies (the
    opponent's N-1 replies interleaved with our remaining N-1 moves, plus the
    opponent's final ply in which it is found to be mated).

    Returns:
        The first mating move in ordered move order, or None if no forced
        mate exists at that distance or the time budget ran out.
    """
    plies = 2 * moves - 1
    ordered = ctx.orderer.order_captures(board, board.legal_moves)
    for move in ordered:
        board.push(move)
        score = -mate_search(board, plies, Score.NEG_INFINITY, Score.INFINITY, ctx).ply_up()
        board.pop()

        if ctx.aborted:
            return None
        if score.is_win:
            return move
    return None


def search_root(
    board: chess.Board,
    depth: int,
    ctx: SearchContext,
    first: chess.Move | None = None,
) -> tuple[chess.Move | None, Score]:
    """
    Search every root move to *depth* and return the best one.

    Args:
        board: Root position. Restored on return.
        depth: Nominal depth in plies (the root move counts as one).
        ctx:   Search context for this iteration.
        first: Best move of the previous iteration, searched first so the
               window narrows as early as possible.

    Returns:
        (best_move, score). best_move is None only when the root has no legal
        moves. If ctx.aborted is set on return the result is unreliable.
    """
    alpha = Score.NEG_INFINITY
    beta = Score.INFINITY
    best_move = None

    for move in ctx.orderer.order(board, board.legal_moves, depth, first=first):
        board.push(move)
        score = -alpha_beta(board, depth - 1, -beta, -alpha, ctx).ply_up()
        board.pop()

        if ctx.aborted:
            break
        if score > alpha:
            alpha = score
            best_move = move

    return best_move, alpha
