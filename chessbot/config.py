"""
Engine configuration.

EngineConfig bundles every tunable search and time-management parameter into
one object so that a host (UCI, web, tests) can override individual values
without touching the module-level defaults in chessbot.constants.
"""

from dataclasses import dataclass

from chessbot import constants


@dataclass(frozen=True)
class EngineConfig:
    """
    Tunable parameters for one Engine session.

    Defaults come from chessbot.constants. Instances are immutable; build a
    new one with dataclasses.replace() to change a value mid-game.

    Raises:
        ValueError: If a depth is not positive, a fraction is outside (0, 1],
                    or a time margin is negative.
    """

    base_depth: int = constants.BASE_DEPTH
    max_depth: int = constants.MAX_DEPTH
    endgame_depth_bonus: int = constants.ENDGAME_DEPTH_BONUS
    quiescence_depth: int = constants.QUIESCENCE_DEPTH
    max_mate_moves: int = constants.MAX_MATE_MOVES
    mate_time_share: float = constants.MATE_TIME_SHARE

    panic_time_fraction: float = constants.PANIC_TIME_FRACTION
    move_time_fraction: float = constants.MOVE_TIME_FRACTION
    panic_move_time_fraction: float = constants.PANIC_MOVE_TIME_FRACTION
    safety_margin_ms: float = constants.SAFETY_MARGIN_MS
    time_cutoff_ms: float = constants.TIME_CUTOFF_MS
    panic_time_cutoff_ms: float = constants.PANIC_TIME_CUTOFF_MS

    expected_game_moves: int = constants.EXPECTED_GAME_MOVES
    min_moves_remaining: int = constants.MIN_MOVES_REMAINING

    def __post_init__(self) -> None:
        for name in ("base_depth", "max_depth", "expected_game_moves", "min_moves_remaining"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")
        for name in ("endgame_depth_bonus", "quiescence_depth", "max_mate_moves"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        for name in (
            "mate_time_share",
            "panic_time_fraction",
            "move_time_fraction",
            "panic_move_time_fraction",
        ):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise ValueError(f"{name} must be in (0, 1], got {value}")
        for name in ("safety_margin_ms", "time_cutoff_ms", "panic_time_cutoff_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.base_depth > self.max_depth:
            raise ValueError(
                f"base_depth ({self.base_depth}) exceeds max_depth ({self.max_depth})"
            )
