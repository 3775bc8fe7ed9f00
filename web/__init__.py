"""
Web application package for the chess engine.

Provides a FastAPI-based REST API that returns the engine's move for a FEN
position and a remaining clock.
"""
