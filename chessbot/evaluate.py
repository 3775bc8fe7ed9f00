"""
Static evaluation: material, pawn structure, mobility and endgame king activity.

A chess engine needs to assign a numeric score to any board position so the
search function can compare moves and choose the best one. This module scores
a position without any lookahead. Every component is accumulated as a
White-minus-Black differential:

- Material: piece counts times piece values (pawn = 1.0).
- Doubled pawns: a penalty for each file holding more than one pawn of a
  colour.
- Mobility: a small bonus per legal move, own moves minus opponent moves.
- King activity: in the endgame only, kings are rewarded for standing close
  to the centre, where they support pawns and restrict the enemy king.

The score is always returned from the perspective of the side to move. This is
the negamax convention: the search always tries to maximize the score, and a
positive score means the current side is ahead. The caller negates the score
when recursing, so the convention propagates automatically.

Checkmate and stalemate are never scored here. The search intercepts terminal
positions before calling evaluate().
"""

import chess

from chessbot.constants import (
    DOUBLED_PAWN_PENALTY,
    ENDGAME_PIECE_THRESHOLD,
    KING_ACTIVITY_WEIGHT,
    MAX_CENTER_DISTANCE,
    MOBILITY_WEIGHT,
    PIECE_VALUES,
)

_NON_KING_TYPES = (chess.PAWN, chess.KNIGHT, chess.BISHOP, chess.ROOK, chess.QUEEN)


def material(board: chess.Board) -> float:
    """Material balance in pawn units, White minus Black."""
    score = 0.0
    for piece_type in _NON_KING_TYPES:
        value = PIECE_VALUES[piece_type]
        score += value * len(board.pieces(piece_type, chess.WHITE))
        score -= value * len(board.pieces(piece_type, chess.BLACK))
    return score


def doubled_pawn_files(board: chess.Board, color: chess.Color) -> int:
    """Number of files on which *color* has two or more pawns."""
    files: dict[int, int] = {}
    for sq in board.pieces(chess.PAWN, color):
        f = chess.square_file(sq)
        files[f] = files.get(f, 0) + 1
    return sum(1 for count in files.values() if count > 1)


def mobility(board: chess.Board) -> float:
    """
    Mobility differential, White minus Black.

    Legal moves for the side not on move are counted on a copy with the turn
    flipped, so the board passed in is never touched.
    """
    own = board.legal_moves.count()
    flipped = board.copy(stack=False)
    flipped.turn = not board.turn
    # The en passant square belongs to the side on move; it is meaningless
    # once the turn is flipped.
    flipped.ep_square = None
    other = flipped.legal_moves.count()

    if board.turn == chess.WHITE:
        return MOBILITY_WEIGHT * (own - other)
    return MOBILITY_WEIGHT * (other - own)


def non_king_piece_count(board: chess.Board, color: chess.Color) -> int:
    return sum(len(board.pieces(pt, color)) for pt in _NON_KING_TYPES)


def is_endgame(board: chess.Board) -> bool:
    """True when both sides are down to ENDGAME_PIECE_THRESHOLD non-king pieces."""
    return (
        non_king_piece_count(board, chess.WHITE) <= ENDGAME_PIECE_THRESHOLD
        and non_king_piece_count(board, chess.BLACK) <= ENDGAME_PIECE_THRESHOLD
    )


def distance_to_center(square: chess.Square) -> int:
    """
    Manhattan distance from *square* to the nearest of d4, e4, d5, e5.

    Measuring against the four centre squares (rather than a single one) keeps
    the term symmetric under a colour flip.
    """
    f = chess.square_file(square)
    r = chess.square_rank(square)
    file_dist = min(abs(f - 3), abs(f - 4))
    rank_dist = min(abs(r - 3), abs(r - 4))
    return file_dist + rank_dist


def king_activity(board: chess.Board) -> float:
    """Endgame king centralization bonus, White minus Black (0 outside the endgame)."""
    if not is_endgame(board):
        return 0.0

    score = 0.0
    white_king = board.king(chess.WHITE)
    black_king = board.king(chess.BLACK)
    if white_king is not None:
        score += KING_ACTIVITY_WEIGHT * (MAX_CENTER_DISTANCE - distance_to_center(white_king))
    if black_king is not None:
        score -= KING_ACTIVITY_WEIGHT * (MAX_CENTER_DISTANCE - distance_to_center(black_king))
    return score


def evaluate(board: chess.Board) -> float:
    """
    Static evaluation in pawn units from the side-to-move's perspective.

    Args:
        board: The current board position. Not modified.

    Returns:
        Positive when the side to move is ahead, negative when it is behind.

    Example:
        >>> import chess
        >>> evaluate(chess.Board())  # starting position is balanced
        0.0
    """
    score = material(board)

    score -= DOUBLED_PAWN_PENALTY * doubled_pawn_files(board, chess.WHITE)
    score += DOUBLED_PAWN_PENALTY * doubled_pawn_files(board, chess.BLACK)

    score += mobility(board)
    score += king_activity(board)

    # Convert to side-to-move perspective (negamax convention).
    return score if board.turn == chess.WHITE else -score
