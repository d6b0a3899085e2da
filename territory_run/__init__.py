"""
Territory run game backend: conquest evaluation engine, PostGIS persistence
and the HTTP API.
"""

__version__ = "1.0.0"
