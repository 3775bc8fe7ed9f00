"""
FastAPI web application for the chess engine.

Exposes a single REST endpoint (POST /api/move) that accepts a FEN position
and the engine's remaining clock, runs the engine search, and returns the
chosen move with score and depth information.

Architecture notes:
- Sync endpoint (not async): FastAPI runs sync handlers in a thread pool,
  which is the correct pattern for CPU-bound blocking calls like engine search.
- One process-wide Engine: its killer/history tables are not thread-safe, so
  searches are serialized with a lock. The client sends the full FEN each
  time; no board state is kept between requests.
"""

import logging
import threading

import chess
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, field_validator

from chessbot.engine import Engine
from chessbot.timing import GameClock

# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

logging.basicConfig(level=logging.INFO)
_log = logging.getLogger(__name__)

app = FastAPI(title="ChessBot", version="1.0.0")

_engine = Engine()
_engine_lock = threading.Lock()


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class MoveRequest(BaseModel):
    """
    Client request to the engine.

    Fields:
        fen:        Full FEN string representing the current board position.
        time_left:  Seconds left on the engine's clock (clamped to
                    [0.1, 3600]). The engine spends a small fraction of it.
        total_time: Seconds on the engine's clock at the start of the game.
                    Defaults to time_left.
    """

    fen: str
    time_left: float = 60.0
    total_time: float | None = None

    @field_validator("time_left")
    @classmethod
    def clamp_time_left(cls, v: float) -> float:
        """Clamp time_left to a safe operating range."""
        return max(0.1, min(v, 3600.0))


class MoveResponse(BaseModel):
    """
    Engine response after computing the move.

    Fields:
        move:  Move in UCI notation (e.g. "e2e4", "e7e8q").
        fen:   Board FEN after the engine's move is applied.
        score: Score in UCI form ("cp 35", "mate 2").
        depth: Deepest completed search depth.
        mate:  True if the move forces checkmate.
    """

    move: str
    fen: str
    score: str
    depth: int
    mate: bool


# ---------------------------------------------------------------------------
# API routes
# ---------------------------------------------------------------------------


@app.post("/api/move", response_model=MoveResponse)
def api_move(request: MoveRequest) -> MoveResponse:
    """
    Compute the engine's move for the given position.

    Raises:
        HTTPException 400: Malformed FEN or game already over.
        HTTPException 500: Engine failure.
    """
    try:
        board = chess.Board(request.fen)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid FEN: {exc}") from exc

    if board.is_game_over():
        raise HTTPException(status_code=400, detail=f"Game is already over: {board.result()}")

    remaining_ms = request.time_left * 1000
    total_ms = max(remaining_ms, (request.total_time or request.time_left) * 1000)

    try:
        with _engine_lock:
            result = _engine.think(board, GameClock(remaining_ms=remaining_ms, total_ms=total_ms))
    except Exception as exc:
        _log.exception("Engine search failed for FEN=%s", request.fen)
        raise HTTPException(status_code=500, detail=f"Engine error: {exc}") from exc

    if result.move is None:
        raise HTTPException(status_code=500, detail="Engine returned no move")

    _log.info(
        "Move=%s score=%s depth=%d nodes=%d fen=%s",
        result.move.uci(),
        result.score,
        result.depth,
        result.nodes,
        request.fen[:40],
    )

    board.push(result.move)
    return MoveResponse(
        move=result.move.uci(),
        fen=board.fen(),
        score=str(result.score),
        depth=result.depth,
        mate=result.mate,
    )
