#!/usr/bin/env python3
"""
Benchmark: measure depth, nodes and time per move on fixed positions.

Run before and after each search or evaluation change to quantify its
effect. Each position is searched as the first move of a game with a fixed
clock, so the engine's own time policy decides how long to think. A higher
completed depth at the same clock means better pruning; higher NPS means a
faster evaluation function.

Usage: python3 tools/bench.py [clock_ms]
"""
import subprocess
import sys
import os

REPO = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
PYTHON = sys.executable
ENGINE = os.path.join(REPO, "interface", "uci.py")

# Default game clock per position: 60 s gives a ~1.2 s move allocation.
DEFAULT_CLOCK_MS = 60_000

# 10 standard positions spanning opening, middlegame, endgame and mates.
# These are fixed forever: the same positions are used for every version comparison.
POSITIONS = [
    ("Start",        "startpos"),
    ("After 1.e4",   "startpos moves e2e4"),
    ("Sicilian",     "startpos moves e2e4 c7c5"),
    ("Italian",      "startpos moves e2e4 e7e5 g1f3 b8c6 f1c4"),
    ("Mid-open",     "fen r1bqkb1r/pppp1ppp/2n2n2/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4"),
    ("Complex mid",  "fen r2q1rk1/ppp2ppp/2np1n2/2b1p1B1/2B1P1b1/2NP1N2/PPP2PPP/R2Q1RK1 w - - 0 8"),
    ("Back rank",    "fen 6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1"),
    ("Pawn ending",  "fen 6k1/ppp2ppp/8/3p4/3P4/8/PPP2PPP/6K1 w - - 0 1"),
    ("Rook ending",  "fen 8/5pk1/6p1/7p/7P/6P1/5PK1/8 w - - 0 1"),
    ("Pawn race",    "fen 8/1p4k1/p7/P1K5/8/8/8/8 w - - 0 1"),
]


def parse_info(line: str) -> dict:
    """
    Parse a UCI "info" line into its numeric fields.

    The score is reported either as "score cp <n>" or "score mate <n>";
    mates are returned under the "mate" key instead of "cp".

    Args:
        line: A line starting with "info".

    Returns:
        Dict with any of: depth, cp, mate, nodes, nps, time.
    """
    parts = line.split()
    fields: dict[str, int] = {}
    for key in ("depth", "cp", "mate", "nodes", "nps", "time"):
        if key in parts:
            try:
                fields[key] = int(parts[parts.index(key) + 1])
            except (ValueError, IndexError):
                continue
    return fields


def run_position(label: str, pos_spec: str, clock_ms: int = DEFAULT_CLOCK_MS) -> dict:
    """Run a single position through the engine and return metrics.

    Spawns the UCI engine as a subprocess, starts a new game, sends the
    position with equal clocks for both sides, then parses the final
    'info depth' line.

    Args:
        label: Human-readable position name for display.
        pos_spec: UCI position string (e.g. "startpos" or "fen <FEN>").
        clock_ms: Both sides' remaining time.

    Returns:
        Dict with keys: label, move, depth, score, nodes, nps, time_ms.
    """
    env = {**os.environ, "PYTHONPATH": REPO}
    proc = subprocess.Popen(
        [PYTHON, ENGINE],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
        text=True,
        env=env,
    )
    cmds = (
        f"uci\nucinewgame\nisready\nposition {pos_spec}\n"
        f"go wtime {clock_ms} btime {clock_ms}\n"
    )
    proc.stdin.write(cmds)
    proc.stdin.flush()

    info: dict[str, int] = {}
    move = "(none)"
    for line in proc.stdout:
        line = line.strip()
        if line.startswith("info depth"):
            info = parse_info(line)
        elif line.startswith("bestmove"):
            move = line.split()[1]
            break

    proc.stdin.write("quit\n")
    proc.stdin.flush()
    proc.wait(timeout=5)

    score = f"#{info['mate']}" if "mate" in info else str(info.get("cp", 0))
    return {
        "label": label,
        "move": move,
        "depth": info.get("depth", 0),
        "score": score,
        "nodes": info.get("nodes", 0),
        "nps": info.get("nps", 0),
        "time_ms": info.get("time", 0),
    }


def main() -> None:
    """Run all benchmark positions and print a summary table."""
    clock_ms = int(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_CLOCK_MS
    print(f"ChessBot benchmark — {PYTHON}")
    print(f"Engine: {ENGINE}  clock: {clock_ms} ms")
    print()
    print(
        f"{'Position':<14} {'Move':<7} {'Depth':>5} {'Score':>6} "
        f"{'Nodes':>8} {'NPS':>8} {'Time(ms)':>9}"
    )
    print("-" * 68)

    results = []
    for label, pos in POSITIONS:
        r = run_position(label, pos, clock_ms)
        results.append(r)
        print(
            f"{r['label']:<14} {r['move']:<7} {r['depth']:>5} {r['score']:>6} "
            f"{r['nodes']:>8,} {r['nps']:>8,} {r['time_ms']:>9,}"
        )

    valid = [r for r in results if r["nodes"] > 0]
    if valid:
        avg_nodes = sum(r["nodes"] for r in valid) // len(valid)
        avg_time = sum(r["time_ms"] for r in valid) // len(valid)
        avg_nps = sum(r["nps"] for r in valid) // len(valid)
        print("-" * 68)
        print(
            f"{'AVERAGE':<14} {'':<7} {'':<5} {'':<6} "
            f"{avg_nodes:>8,} {avg_nps:>8,} {avg_time:>9,}"
        )


if __name__ == "__main__":
    main()
