"""Lobby store for map veto sessions.

Lobbies live in memory for the lifetime of the process. The store is
created by the application factory and passed to the handlers that need it.
"""

from mapveto.lobby.manager import LobbyManager, sanitize_team_name

__all__ = [
    "LobbyManager",
    "sanitize_team_name",
]
