"""
Engine constants: piece values, evaluation weights, search and time parameters.

All numeric constants used throughout the engine are defined here so that
other modules never need to introduce new magic numbers. EngineConfig reads
its defaults from this module, so tuning a value here changes the default
behaviour everywhere.

Scores are expressed in pawn units (1 pawn = 1.0). Fractional weights such as
the mobility bonus only make sense on that scale.
"""

import chess

# ---------------------------------------------------------------------------
# Piece values (pawn units)
# ---------------------------------------------------------------------------
# Used for material counting and for MVV-LVA capture ordering. The king has no
# material value: it is never traded, and checkmate is scored separately.

PAWN_VALUE: float = 1.0
KNIGHT_VALUE: float = 3.0
BISHOP_VALUE: float = 3.0
ROOK_VALUE: float = 5.0
QUEEN_VALUE: float = 9.0
KING_VALUE: float = 0.0

PIECE_VALUES: dict[int, float] = {
    chess.PAWN:   PAWN_VALUE,
    chess.KNIGHT: KNIGHT_VALUE,
    chess.BISHOP: BISHOP_VALUE,
    chess.ROOK:   ROOK_VALUE,
    chess.QUEEN:  QUEEN_VALUE,
    chess.KING:   KING_VALUE,
}

# ---------------------------------------------------------------------------
# Evaluation weights
# ---------------------------------------------------------------------------

# Penalty per file holding more than one pawn of the same colour.
DOUBLED_PAWN_PENALTY: float = 0.5

# Bonus per legal move (own moves minus opponent moves).
MOBILITY_WEIGHT: float = 0.1

# King centralization weight, applied only in the endgame.
KING_ACTIVITY_WEIGHT: float = 0.3

# Largest Manhattan distance from any square to the nearest centre square
# (a1 -> d4 is 3 + 3). A king on a centre square earns the full bonus.
MAX_CENTER_DISTANCE: int = 6

# Both sides must be at or below this many non-king pieces for the position
# to count as an endgame (king activity on, deeper search allowed).
ENDGAME_PIECE_THRESHOLD: int = 7

# ---------------------------------------------------------------------------
# Search parameters
# ---------------------------------------------------------------------------

# Starting depth for iterative deepening when time is plentiful.
BASE_DEPTH: int = 4

# Hard ceiling for iterative deepening outside the endgame.
MAX_DEPTH: int = 6

# Extra plies allowed (both for the starting depth and the ceiling) when the
# position is an endgame: fewer pieces means a lower branching factor.
ENDGAME_DEPTH_BONUS: int = 2

# Capture-only plies searched past the nominal horizon.
QUIESCENCE_DEPTH: int = 4

# The mate pre-pass looks for mates in 1..MAX_MATE_MOVES full moves.
MAX_MATE_MOVES: int = 3

# Share of the per-move allocation the mate pre-pass may consume before the
# main search takes over.
MATE_TIME_SHARE: float = 0.1

# ---------------------------------------------------------------------------
# Time management
# ---------------------------------------------------------------------------

# Panic mode starts once remaining time falls to this fraction of the game's
# initial time.
PANIC_TIME_FRACTION: float = 0.25

# Fraction of the remaining time allocated to a single move.
MOVE_TIME_FRACTION: float = 0.02
PANIC_MOVE_TIME_FRACTION: float = 0.01

# No new iteration starts unless elapsed + margin is below the allocation.
SAFETY_MARGIN_MS: float = 50.0

# Remaining game time at which the search abandons deeper recursion.
TIME_CUTOFF_MS: float = 100.0
PANIC_TIME_CUTOFF_MS: float = 50.0

# Used to estimate how many moves remain when choosing the starting depth.
EXPECTED_GAME_MOVES: int = 40
MIN_MOVES_REMAINING: int = 10

# Average-time-per-move thresholds (as fractions of the game's initial time)
# below which the starting depth is reduced to 2 and 3 respectively.
SHALLOW_TIME_FRACTION: float = 0.01
MEDIUM_TIME_FRACTION: float = 0.05
