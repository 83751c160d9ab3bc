"""Game domain services: deck, scoring, the round machine and sessions.

This package contains the pure game engine that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics.
"""
