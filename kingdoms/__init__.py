"""
Kingdoms - Multiplayer rule engine for the Kingdoms board game.

Players place tiles and ranked castles on a shared 5x6 board over three
epochs; rows and columns are scored after each one. The package provides:
- The pure rule engine (setup, validation, execution, scoring)
- Per-viewer sanitization of hidden tiles
- Rooms with a lobby lifecycle and serialized access
- A FastAPI server and bot players for simulations
"""

__version__ = "0.1.0"
