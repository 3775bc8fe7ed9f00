"""
UCI host for the ChessBot engine.

Reads GUI commands from stdin and answers on stdout, one flushed line per
reply. Supported commands: uci, isready, ucinewgame, position, go, stop,
quit. Anything else is ignored.

One Engine session lives for one game, so its killer and history tables
carry over between "go" commands until "ucinewgame".

Threading model:
    "go" starts the search on a daemon thread and returns, leaving the main
    loop free to read "stop". The search's clock is wrapped in a
    StoppableClock: once "stop" sets its event the clock reports no time
    left, the search unwinds at its next node and replies with the deepest
    completed move.

Only protocol lines may go to stdout. Diagnostics are logged to stderr.
"""

import logging
import sys
import os
import threading

# ---------------------------------------------------------------------------
# Path setup: make 'chessbot' importable when this script is run directly.
# When run as `python interface/uci.py` from the repo root, sys.path may not
# include the repo root, so `import chessbot` would fail.
# ---------------------------------------------------------------------------
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

import chess
from chessbot.engine import Engine
from chessbot.timing import GameClock

_log = logging.getLogger(__name__)

# "go infinite" or no time control: think for up to ~2.8 hours, until "stop".
_INFINITE_MS = 10_000_000


def _send(line: str) -> None:
    """Write one protocol line to stdout, flushed so the GUI sees it at once."""
    print(line, flush=True)


class StoppableClock:
    """
    GameClock wrapper that reports no remaining time once *stop_event* is set.

    The search polls remaining_ms at every node, so setting the event makes
    the current iteration abort at the next poll.
    """

    def __init__(self, clock: GameClock, stop_event: threading.Event) -> None:
        self._clock = clock
        self._stop_event = stop_event

    @property
    def remaining_ms(self) -> float:
        if self._stop_event.is_set():
            return 0.0
        return self._clock.remaining_ms

    @property
    def elapsed_ms(self) -> float:
        return self._clock.elapsed_ms

    @property
    def total_ms(self) -> float:
        return self._clock.total_ms


class UciHandler:
    """
    Stateful handler for the UCI protocol.

    Holds the current board position, the engine session for the current game
    and the search thread lifecycle. The main UCI loop creates one instance
    and dispatches commands to it.

    Attributes:
        board:         The current board position, updated by "position".
        engine:        Engine session; its killer/history tables persist until
                       "ucinewgame".
        initial_time:  First wtime/btime seen this game, per colour. Used as
                       the clock's total time for panic-mode decisions.
        search_thread: The active search thread, or None.
        stop_event:    Event shared with the search thread's clock.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        self.board: chess.Board = chess.Board()
        self.engine: Engine = engine or Engine()
        self.initial_time: dict[chess.Color, int] = {}
        self.search_thread: threading.Thread | None = None
        self.stop_event: threading.Event = threading.Event()

    def dispatch(self, line: str) -> None:
        """Route one input line to its handler. Unknown commands are ignored."""
        tokens = line.split()
        if not tokens:
            return
        command, args = tokens[0], tokens[1:]

        no_args = {
            "uci": self.handle_uci,
            "isready": self.handle_isready,
            "ucinewgame": self.handle_ucinewgame,
            "stop": self.handle_stop,
            "quit": self.handle_quit,
        }
        with_args = {
            "position": self.handle_position,
            "go": self.handle_go,
        }
        if command in no_args:
            no_args[command]()
        elif command in with_args:
            with_args[command](args)
        else:
            _log.debug("ignoring unknown command: %r", command)

    # -----------------------------------------------------------------------
    # Command handlers
    # -----------------------------------------------------------------------

    def handle_uci(self) -> None:
        """Identify the engine and finish with "uciok". No options are exposed."""
        _send("id name ChessBot")
        _send("id author ChessBot Project")
        _send("uciok")

    def handle_isready(self) -> None:
        """
        Respond to the "isready" command.

        Used by the GUI as a synchronization barrier. There is no lazy
        initialization, so we respond immediately.
        """
        _send("readyok")

    def handle_ucinewgame(self) -> None:
        """
        Respond to the "ucinewgame" command.

        Stops any running search, resets the board, forgets the game's
        initial clock and clears the engine's killer and history tables.
        """
        self._stop_search()
        self.board = chess.Board()
        self.initial_time = {}
        self.engine.new_game()

    def handle_position(self, tokens: list[str]) -> None:
        """
        Set up the position from "position startpos|fen <FEN> [moves ...]".

        The new board replaces the current one only once it is built. A bad
        FEN keeps the previous position. The move list is applied up to its
        first illegal or malformed move.
        """
        if "moves" in tokens:
            split = tokens.index("moves")
            setup, move_tokens = tokens[:split], tokens[split + 1:]
        else:
            setup, move_tokens = tokens, []

        if setup == ["startpos"]:
            board = chess.Board()
        elif setup[:1] == ["fen"]:
            try:
                board = chess.Board(" ".join(setup[1:]))
            except ValueError as exc:
                _log.error("bad FEN in position command: %s", exc)
                return
        else:
            _log.warning("unknown position command: %s", " ".join(tokens))
            return

        for token in move_tokens:
            try:
                board.push_uci(token)
            except ValueError:
                _log.warning("illegal move in position command: %s", token)
                break

        self.board = board

    def handle_go(self, tokens: list[str]) -> None:
        """
        Parse a "go" command and start the search in a background thread.

        We copy the current board so the main thread may receive the next
        "position" command while the search is still running.

        In "go infinite" mode the GUI must send "stop" before it may receive
        "bestmove", so a search that finishes early holds its reply until
        then.

        Args:
            tokens: The command tokens with "go" already stripped.
        """
        self._stop_search()

        stop_event = threading.Event()
        self.stop_event = stop_event
        clock = StoppableClock(self._clock_for(tokens), stop_event)
        board_copy = self.board.copy()
        engine = self.engine
        infinite = "infinite" in tokens

        def search_and_reply() -> None:
            """
            Run the search and emit the UCI info + bestmove lines.

            The GUI will not make its next move until it receives "bestmove",
            so one is sent even if the search fails.
            """
            bestmove = "(none)"
            try:
                result = engine.think(board_copy, clock)
                if result.move is not None:
                    elapsed_ms = max(1, int(result.elapsed_ms))
                    nps = result.nodes * 1000 // elapsed_ms
                    _send(
                        f"info depth {result.depth} score {result.score} "
                        f"nodes {result.nodes} nps {nps} time {elapsed_ms}"
                    )
                    bestmove = result.move.uci()
                else:
                    # No legal moves: "(none)" is the standard reply.
                    _log.info("no legal moves: %s", result.terminal)
            except Exception:
                _log.exception("search error")

            if infinite:
                stop_event.wait()
            _send(f"bestmove {bestmove}")

        self.search_thread = threading.Thread(target=search_and_reply, daemon=True)
        self.search_thread.start()

    def handle_stop(self) -> None:
        """Signal the search thread to stop and wait for its "bestmove"."""
        self._stop_search()

    def handle_quit(self) -> None:
        """Stop the search and exit the process."""
        self._stop_search()
        sys.exit(0)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    def _stop_search(self) -> None:
        """
        Signal the current search thread to stop and wait for it to exit.

        The 2-second join timeout keeps the UCI loop responsive if the search
        thread misbehaves; in normal operation it exits within one node.
        """
        self.stop_event.set()
        if self.search_thread is not None and self.search_thread.is_alive():
            self.search_thread.join(timeout=2.0)
        self.search_thread = None

    def _clock_for(self, tokens: list[str]) -> GameClock:
        """
        Build the clock for this move from "go" command tokens.

        Supports:
            movetime <ms>              think for about this many milliseconds
            wtime <ms> btime <ms>      game clock for each side
            infinite (or nothing)      think until "stop"

        movetime is expressed as a clock whose regular allocation equals the
        requested time.

        Args:
            tokens: The go command tokens (with "go" stripped).
        """
        params: dict[str, int] = {}
        for key, value in zip(tokens, tokens[1:]):
            if value.lstrip("-").isdigit():
                params.setdefault(key, int(value))

        if "movetime" in params:
            return self._fixed_time_clock(params["movetime"])

        color = self.board.turn
        time_key = "wtime" if color == chess.WHITE else "btime"
        if time_key in params:
            time_left = max(1, params[time_key])
            total = self.initial_time.setdefault(color, time_left)
            return GameClock(remaining_ms=time_left, total_ms=max(total, time_left))

        return self._fixed_time_clock(_INFINITE_MS)

    def _fixed_time_clock(self, move_ms: int) -> GameClock:
        remaining = max(1, move_ms) / self.engine.config.move_time_fraction
        return GameClock(remaining_ms=remaining, total_ms=remaining)


def run_uci_loop() -> None:
    """
    Read commands from stdin until "quit" or end of input.

    A failing command is logged and the loop keeps going: in a tournament a
    crashed engine forfeits the game.
    """
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    handler = UciHandler()

    for raw_line in sys.stdin:
        try:
            handler.dispatch(raw_line)
        except Exception:
            _log.exception("unhandled error for command %r", raw_line.strip())


if __name__ == "__main__":
    run_uci_loop()
