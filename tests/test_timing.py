"""Unit tests for the clock, time budget policy and EngineConfig validation."""

import chess
import pytest

from chessbot.config import EngineConfig
from chessbot.timing import GameClock, allocate, initial_depth, is_panic, max_depth

ENDGAME_FEN = "8/5pk1/6p1/7p/7P/6P1/5PK1/8 w - - 0 1"


class TestGameClock:
    def test_counts_down(self, fake_time):
        clock = GameClock(remaining_ms=10_000, total_ms=60_000, now=fake_time)
        fake_time.advance_ms(250)
        assert clock.elapsed_ms == pytest.approx(250)
        assert clock.remaining_ms == pytest.approx(9_750)
        assert clock.total_ms == 60_000

    def test_never_negative(self, fake_time):
        clock = GameClock(remaining_ms=100, now=fake_time)
        fake_time.advance_ms(500)
        assert clock.remaining_ms == 0.0

    def test_total_defaults_to_remaining(self, fake_time):
        assert GameClock(remaining_ms=5_000, now=fake_time).total_ms == 5_000


class TestAllocation:
    def test_normal_fraction(self, fake_time):
        budget = allocate(GameClock(60_000, 60_000, now=fake_time), EngineConfig())
        assert not budget.panic
        assert budget.allocated_ms == pytest.approx(1_200)
        assert budget.cutoff_ms == 100

    def test_panic_fraction(self, fake_time):
        clock = GameClock(10_000, 60_000, now=fake_time)
        assert is_panic(clock, EngineConfig())
        budget = allocate(clock, EngineConfig())
        assert budget.panic
        assert budget.allocated_ms == pytest.approx(100)
        assert budget.cutoff_ms == 50

    def test_panic_threshold_is_inclusive(self, fake_time):
        assert is_panic(GameClock(15_000, 60_000, now=fake_time), EngineConfig())
        assert not is_panic(GameClock(15_001, 60_000, now=fake_time), EngineConfig())

    def test_may_deepen_keeps_safety_margin(self, fake_time):
        clock = GameClock(60_000, 60_000, now=fake_time)
        budget = allocate(clock, EngineConfig())
        fake_time.advance_ms(1_100)
        assert budget.may_deepen(clock)
        fake_time.advance_ms(60)
        assert not budget.may_deepen(clock)
        assert not budget.expired(clock)

    def test_expired_after_allocation(self, fake_time):
        clock = GameClock(60_000, 60_000, now=fake_time)
        budget = allocate(clock, EngineConfig())
        fake_time.advance_ms(1_200)
        assert budget.expired(clock)
        fake_time.advance_ms(30)
        assert budget.overrun_ms(clock) == pytest.approx(30)

    def test_expired_when_game_clock_nearly_empty(self, fake_time):
        clock = GameClock(150, 150, now=fake_time)
        budget = allocate(clock, EngineConfig(move_time_fraction=1.0))
        fake_time.advance_ms(49)
        assert not budget.expired(clock)
        fake_time.advance_ms(2)
        assert budget.elapsed(clock) < budget.allocated_ms
        assert budget.expired(clock)

    def test_anchor_is_start_of_thinking(self, fake_time):
        clock = GameClock(60_000, 60_000, now=fake_time)
        fake_time.advance_ms(500)
        budget = allocate(clock, EngineConfig())
        assert budget.elapsed(clock) == pytest.approx(0)

    def test_share(self, fake_time):
        budget = allocate(GameClock(60_000, 60_000, now=fake_time), EngineConfig())
        assert budget.share(0.5).allocated_ms == pytest.approx(600)
        assert budget.share(0.5).started_ms == budget.started_ms


class TestDepthPolicy:
    def test_endgame_allows_deeper_search(self):
        config = EngineConfig()
        assert max_depth(chess.Board(), config) == config.max_depth
        assert max_depth(chess.Board(ENDGAME_FEN), config) == config.max_depth + config.endgame_depth_bonus

    def test_plenty_of_time_uses_base_depth(self, fake_time):
        board = chess.Board()
        board.fullmove_number = 35
        clock = GameClock(600_000, 600_000, now=fake_time)
        assert initial_depth(board, clock, EngineConfig(), panic=False) == 4

    def test_little_time_is_shallower(self, fake_time):
        config = EngineConfig()
        board = chess.Board()
        medium = initial_depth(board, GameClock(60_000, 60_000, now=fake_time), config, False)
        short = initial_depth(board, GameClock(10_000, 60_000, now=fake_time), config, False)
        assert medium == 3
        assert short == 2

    def test_panic_is_shallower(self, fake_time):
        board = chess.Board()
        board.fullmove_number = 35
        clock = GameClock(600_000, 600_000, now=fake_time)
        assert initial_depth(board, clock, EngineConfig(), panic=True) == 3

    def test_endgame_is_deeper(self, fake_time):
        clock = GameClock(600_000, 600_000, now=fake_time)
        board = chess.Board(ENDGAME_FEN)
        assert initial_depth(board, clock, EngineConfig(), panic=False) == 5

    def test_never_below_one(self, fake_time):
        clock = GameClock(100, 600_000, now=fake_time)
        config = EngineConfig(base_depth=1)
        assert initial_depth(chess.Board(), clock, config, panic=True) == 1


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig()
        assert config.max_depth == 6
        assert config.move_time_fraction == 0.02

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_depth": 0},
            {"move_time_fraction": 0.0},
            {"panic_time_fraction": 1.5},
            {"safety_margin_ms": -1},
            {"base_depth": 7, "max_depth": 6},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            EngineConfig(**overrides)
