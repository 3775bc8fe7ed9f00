"""
Tests for the UCI protocol handler and the benchmark's info-line parser.

Tests verify:
1. "position" parsing (startpos, FEN, move lists, illegal moves)
2. "go" clock construction (wtime/btime, movetime, infinite)
3. "go" replies with exactly one bestmove, "(none)" when mated
4. "stop" ends an infinite search, which holds its bestmove until then
5. "ucinewgame" resets the board, the initial clock and the engine tables
"""

import threading

import chess
import pytest

from chessbot.config import EngineConfig
from chessbot.engine import Engine
from chessbot.timing import GameClock, allocate
from interface.uci import StoppableClock, UciHandler
from tools.bench import parse_info

FOOLS_MATE_MOVES = ["f2f3", "e7e5", "g2g4", "d8h4"]
BACK_RANK_FEN = "6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1"
ONLY_MOVE_FEN = "7k/8/8/8/8/8/6q1/7K w - - 0 1"


def run_go(handler: UciHandler, tokens: list[str]) -> None:
    handler.handle_go(tokens)
    handler.search_thread.join(timeout=30)
    assert not handler.search_thread.is_alive()


class TestPosition:
    def test_startpos_with_moves(self):
        handler = UciHandler()
        handler.handle_position(["startpos", "moves", "e2e4", "e7e5"])
        expected = chess.Board()
        expected.push_uci("e2e4")
        expected.push_uci("e7e5")
        assert handler.board == expected

    def test_fen(self):
        handler = UciHandler()
        handler.handle_position(["fen", *BACK_RANK_FEN.split()])
        assert handler.board.fen() == BACK_RANK_FEN

    def test_fen_with_moves(self):
        handler = UciHandler()
        handler.handle_position(["fen", *BACK_RANK_FEN.split(), "moves", "a1a7"])
        assert handler.board.piece_at(chess.A7) == chess.Piece(chess.ROOK, chess.WHITE)
        assert handler.board.turn == chess.BLACK

    def test_illegal_move_stops_the_move_list(self):
        handler = UciHandler()
        handler.handle_position(["startpos", "moves", "e2e4", "e2e4", "d7d5"])
        assert len(handler.board.move_stack) == 1

    def test_bad_fen_keeps_previous_board(self):
        handler = UciHandler()
        handler.handle_position(["fen", "not", "a", "fen"])
        assert handler.board == chess.Board()


class TestClock:
    def test_wtime_for_white(self):
        handler = UciHandler()
        clock = handler._clock_for(["wtime", "30000", "btime", "20000"])
        assert clock.remaining_ms == pytest.approx(30_000, abs=100)
        assert clock.total_ms == 30_000

    def test_btime_for_black(self):
        handler = UciHandler()
        handler.handle_position(["startpos", "moves", "e2e4"])
        clock = handler._clock_for(["wtime", "30000", "btime", "20000"])
        assert clock.remaining_ms == pytest.approx(20_000, abs=100)

    def test_first_time_seen_is_the_total(self):
        handler = UciHandler()
        handler._clock_for(["wtime", "60000", "btime", "60000"])
        clock = handler._clock_for(["wtime", "10000", "btime", "50000"])
        assert clock.total_ms == 60_000
        assert handler.initial_time == {chess.WHITE: 60_000}

    def test_movetime_becomes_the_allocation(self):
        handler = UciHandler()
        clock = handler._clock_for(["movetime", "500"])
        budget = allocate(clock, handler.engine.config)
        assert not budget.panic
        assert budget.allocated_ms == pytest.approx(500, abs=5)

    def test_infinite_has_a_large_budget(self):
        handler = UciHandler()
        clock = handler._clock_for(["infinite"])
        assert allocate(clock, handler.engine.config).allocated_ms > 1_000_000


class TestStoppableClock:
    def test_reports_zero_after_stop(self, fake_time):
        stop = threading.Event()
        clock = StoppableClock(GameClock(5_000, 10_000, now=fake_time), stop)
        fake_time.advance_ms(100)
        assert clock.remaining_ms == pytest.approx(4_900)
        stop.set()
        assert clock.remaining_ms == 0.0
        assert clock.elapsed_ms == pytest.approx(100)
        assert clock.total_ms == 10_000


class TestGo:
    def test_bestmove_is_legal(self, capsys):
        handler = UciHandler()
        run_go(handler, ["movetime", "200"])

        lines = capsys.readouterr().out.splitlines()
        bestmoves = [line for line in lines if line.startswith("bestmove")]
        assert len(bestmoves) == 1
        move = chess.Move.from_uci(bestmoves[0].split()[1])
        assert move in chess.Board().legal_moves

    def test_mate_reported_in_info(self, capsys):
        handler = UciHandler()
        handler.handle_position(["fen", *BACK_RANK_FEN.split()])
        run_go(handler, ["wtime", "60000", "btime", "60000"])

        out = capsys.readouterr().out
        assert "score mate 1" in out
        assert "bestmove a1a8" in out

    def test_no_legal_moves(self, capsys):
        handler = UciHandler()
        handler.handle_position(["startpos", "moves", *FOOLS_MATE_MOVES])
        run_go(handler, ["wtime", "60000", "btime", "60000"])
        assert "bestmove (none)" in capsys.readouterr().out

    def test_search_does_not_touch_the_position(self, capsys):
        handler = UciHandler()
        handler.handle_position(["startpos", "moves", "e2e4"])
        before = handler.board.fen()
        run_go(handler, ["movetime", "100"])
        assert handler.board.fen() == before

    def test_stop_ends_infinite_search(self, capsys):
        handler = UciHandler()
        handler.handle_go(["infinite"])
        handler.handle_stop()

        assert handler.search_thread is None
        out = capsys.readouterr().out
        assert out.count("bestmove") == 1

    def test_infinite_holds_bestmove_until_stop(self, capsys):
        handler = UciHandler()
        # A single legal move: the search itself returns at once.
        handler.handle_position(["fen", *ONLY_MOVE_FEN.split()])
        handler.handle_go(["infinite"])
        handler.search_thread.join(timeout=0.5)

        assert handler.search_thread.is_alive()
        assert "bestmove" not in capsys.readouterr().out

        handler.handle_stop()
        assert "bestmove h1g2" in capsys.readouterr().out


class TestSession:
    def test_uci_identifies(self, capsys):
        UciHandler().handle_uci()
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("id name ")
        assert lines[-1] == "uciok"

    def test_isready(self, capsys):
        UciHandler().handle_isready()
        assert capsys.readouterr().out.strip() == "readyok"

    def test_ucinewgame_resets_state(self):
        handler = UciHandler()
        handler.handle_position(["startpos", "moves", "e2e4"])
        handler._clock_for(["wtime", "60000", "btime", "60000"])
        handler.engine.orderer.record_cutoff(chess.Board(), chess.Move.from_uci("g1f3"), depth=3)

        handler.handle_ucinewgame()

        assert handler.board == chess.Board()
        assert handler.initial_time == {}
        assert len(handler.engine.orderer.killers) == 0
        assert len(handler.engine.orderer.history) == 0

    def test_dispatch_routes_commands(self, capsys):
        handler = UciHandler()
        handler.dispatch("isready\n")
        handler.dispatch("position startpos moves d2d4\n")
        handler.dispatch("   \n")
        handler.dispatch("setoption name Hash value 16\n")
        assert capsys.readouterr().out.strip() == "readyok"
        assert handler.board.move_stack == [chess.Move.from_uci("d2d4")]

    def test_engine_is_injectable(self):
        config = EngineConfig(max_depth=3, base_depth=2)
        handler = UciHandler(Engine(config))
        assert handler.engine.config.max_depth == 3


class TestParseInfo:
    def test_centipawn_line(self):
        line = "info depth 5 score cp -35 nodes 12000 nps 8000 time 1500"
        assert parse_info(line) == {
            "depth": 5,
            "cp": -35,
            "nodes": 12000,
            "nps": 8000,
            "time": 1500,
        }

    def test_mate_line(self):
        fields = parse_info("info depth 1 score mate 2 nodes 40 nps 4000 time 10")
        assert fields["mate"] == 2
        assert "cp" not in fields

    def test_garbage_values_skipped(self):
        assert parse_info("info depth x nodes 7") == {"nodes": 7}
