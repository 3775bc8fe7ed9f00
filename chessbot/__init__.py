"""
Time-bounded chess search engine.

This package picks a move for a python-chess position within a wall-clock
budget, using negamax search with alpha-beta pruning, quiescence search, a
mate-finding pre-pass and iterative deepening.

Modules:
    constants — Piece values, evaluation weights, search and time parameters
    config    — EngineConfig: overridable view of the constants
    score     — Tagged Score values (finite or forced win/loss in N plies)
    evaluate  — Static evaluation (material, pawns, mobility, king activity)
    ordering  — Killer moves, MVV-LVA, history heuristic
    timing    — Clock protocol, GameClock, per-move TimeBudget policy
    search    — Alpha-beta, quiescence search, mate search
    engine    — Engine: mate pre-pass and iterative deepening controller
"""
