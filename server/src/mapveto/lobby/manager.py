"""Lobby store for map veto sessions.

This module provides the LobbyManager class which holds every active
lobby in memory. It is the single source of truth for session state and
the only place lobbies are mutated. Nothing is persisted: a restart
loses all lobbies.
"""

import asyncio
import logging
import random
import secrets
import time
from collections.abc import Callable

from mapveto.draft.engine import DraftAction, DraftEngine, DraftEvent, teams_event
from mapveto.draft.errors import NotFoundError, ValidationError
from mapveto.draft.rounds import confirm_winner, propose_winner
from mapveto.draft.rules import DraftFormat, GameTitle
from mapveto.draft.state import (
    DraftStatus,
    Lobby,
    LobbyOptions,
    ParticipantRole,
    TeamSlot,
)

logger = logging.getLogger(__name__)

# Characters for lobby codes (excluding ambiguous: O/0, I/1/L)
LOBBY_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
LOBBY_CODE_LENGTH = 6

LobbyOperation = Callable[[Lobby], tuple[Lobby, list[DraftEvent]]]


def _generate_lobby_code() -> str:
    """Generate a random lobby code."""
    return "".join(secrets.choice(LOBBY_CODE_ALPHABET) for _ in range(LOBBY_CODE_LENGTH))


def sanitize_team_name(name: str, max_length: int = 32) -> str:
    """Trim, cap the length and strip angle brackets from a team name."""
    return name.strip()[:max_length].replace("<", "").replace(">", "").strip()


class LobbyManager:
    """Manages all active lobbies in memory.

    This class is responsible for:
    - Creating, listing and deleting lobbies
    - Tracking members, observers and the two team slots
    - Starting drafts and applying draft/round actions
    - Serializing mutations per lobby so concurrent actions cannot race

    Every mutation runs against a copy of the lobby and is committed only if
    it succeeds, so a rejected action never leaves partial state behind.
    """

    def __init__(
        self,
        strict_turn_order: bool = True,
        coin_flip_default: bool = True,
        team_name_max_length: int = 32,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the lobby manager.

        Args:
            strict_turn_order: Default for LobbyOptions.strict_turns
            coin_flip_default: Default for LobbyOptions.coin_flip
            team_name_max_length: Maximum team name length after trimming
            rng: Random source for coin flips (module random if None)
            clock: Wall-clock source for coin flips
        """
        self._lobbies: dict[str, Lobby] = {}  # id -> Lobby
        self._lobby_locks: dict[str, asyncio.Lock] = {}  # id -> per-lobby lock
        self._connection_lobbies: dict[str, set[str]] = {}  # connection -> lobby ids
        self._lock = asyncio.Lock()
        self._strict_turn_order = strict_turn_order
        self._coin_flip_default = coin_flip_default
        self._team_name_max_length = team_name_max_length
        self._rng = rng
        self._clock = clock

    def build_options(
        self,
        *,
        coin_flip: bool | None = None,
        knife_decider: bool = False,
        pool_size: int = 7,
        modes_size: int = 4,
        custom_map_pool: list[str] | None = None,
        strict_turns: bool | None = None,
    ) -> LobbyOptions:
        """Build lobby options, filling unset values from the manager defaults."""
        return LobbyOptions(
            coin_flip=self._coin_flip_default if coin_flip is None else coin_flip,
            knife_decider=knife_decider,
            pool_size=pool_size,
            modes_size=modes_size,
            custom_map_pool=custom_map_pool,
            strict_turns=self._strict_turn_order if strict_turns is None else strict_turns,
        )

    async def create_lobby(
        self,
        title: GameTitle,
        fmt: DraftFormat,
        options: LobbyOptions | None = None,
        lobby_id: str | None = None,
        admin: bool = False,
    ) -> Lobby:
        """Create a new lobby.

        Args:
            title: Game title
            fmt: Match format
            options: Creation options (manager defaults if None)
            lobby_id: Requested id (generated if None)
            admin: Whether an administrator created the lobby

        Returns:
            The new Lobby

        Raises:
            ConfigurationError: If the format/options combination is invalid
            ValidationError: If the requested id is already in use
        """
        if options is None:
            options = self.build_options()

        async with self._lock:
            if lobby_id is None:
                lobby_id = _generate_lobby_code()
                while lobby_id in self._lobbies:
                    lobby_id = _generate_lobby_code()
            elif lobby_id in self._lobbies:
                raise ValidationError(f"Lobby {lobby_id} already exists", code="lobby_exists")

            lobby = DraftEngine.create_lobby(lobby_id, title, fmt, options, admin=admin)
            self._lobbies[lobby_id] = lobby
            self._lobby_locks[lobby_id] = asyncio.Lock()

        logger.info(
            f"Lobby {lobby_id} created ({title.value} {fmt.value}, admin={admin}, "
            f"coin_flip={options.coin_flip})"
        )
        return lobby

    def get_lobby(self, lobby_id: str) -> Lobby | None:
        """Get a lobby by id."""
        return self._lobbies.get(lobby_id)

    def require_lobby(self, lobby_id: str) -> Lobby:
        """Get a lobby by id, raising NotFoundError if it does not exist."""
        lobby = self._lobbies.get(lobby_id)
        if lobby is None:
            raise NotFoundError(f"Lobby {lobby_id} not found")
        return lobby

    def list_lobbies(self) -> list[Lobby]:
        """Get all lobbies, oldest first."""
        return sorted(self._lobbies.values(), key=lambda lobby: lobby.created_at)

    def lobbies_for_connection(self, connection_id: str) -> set[str]:
        """Get the ids of lobbies a connection has joined."""
        return set(self._connection_lobbies.get(connection_id, set()))

    async def delete_lobby(self, lobby_id: str) -> bool:
        """Delete a lobby.

        Args:
            lobby_id: The lobby to delete

        Returns:
            True if the lobby existed
        """
        async with self._lock:
            return self._delete_lobby_internal(lobby_id)

    def _delete_lobby_internal(self, lobby_id: str) -> bool:
        """Remove a lobby and its bookkeeping. Must be called with self._lock held."""
        lobby = self._lobbies.pop(lobby_id, None)
        if lobby is None:
            return False

        self._lobby_locks.pop(lobby_id, None)
        for connection_id in lobby.members | lobby.observers:
            joined = self._connection_lobbies.get(connection_id)
            if joined is not None:
                joined.discard(lobby_id)
                if not joined:
                    del self._connection_lobbies[connection_id]

        logger.info(f"Lobby {lobby_id} deleted")
        return True

    async def _mutate(
        self, lobby_id: str, operation: LobbyOperation
    ) -> tuple[Lobby, list[DraftEvent]]:
        """Apply an operation to a copy of a lobby and commit it on success.

        Operations on the same lobby are serialized by a per-lobby lock.
        """
        lock = self._lobby_locks.get(lobby_id)
        if lock is None:
            raise NotFoundError(f"Lobby {lobby_id} not found")

        async with lock:
            lobby = self._lobbies.get(lobby_id)
            if lobby is None:
                raise NotFoundError(f"Lobby {lobby_id} not found")

            working, events = operation(lobby.copy())
            working.version = lobby.version + 1
            self._lobbies[lobby_id] = working

        return working, events

    async def join_lobby(
        self,
        lobby_id: str,
        connection_id: str,
        role: ParticipantRole = ParticipantRole.MEMBER,
    ) -> Lobby:
        """Subscribe a connection to a lobby as member or observer.

        Args:
            lobby_id: The lobby id
            connection_id: Connection identity
            role: MEMBER (may register a team) or OBSERVER (read-only)

        Returns:
            Updated Lobby
        """

        def operation(lobby: Lobby) -> tuple[Lobby, list[DraftEvent]]:
            if role == ParticipantRole.MEMBER:
                lobby.observers.discard(connection_id)
                lobby.members.add(connection_id)
            else:
                lobby.members.discard(connection_id)
                lobby.observers.add(connection_id)
            return lobby, []

        lobby, _ = await self._mutate(lobby_id, operation)
        self._connection_lobbies.setdefault(connection_id, set()).add(lobby_id)
        logger.info(f"Connection {connection_id} joined lobby {lobby_id} as {role.value}")
        return lobby

    async def set_team_name(
        self,
        lobby_id: str,
        connection_id: str,
        name: str,
    ) -> tuple[Lobby, list[DraftEvent]]:
        """Assign the caller to a team slot.

        A name matching a disconnected team reclaims that slot. Once two
        teams are present a non-admin lobby starts its draft immediately.

        Args:
            lobby_id: The lobby id
            connection_id: Caller identity
            name: Requested team name

        Returns:
            Tuple of (lobby, events)
        """
        team_name = sanitize_team_name(name, self._team_name_max_length)

        def operation(lobby: Lobby) -> tuple[Lobby, list[DraftEvent]]:
            if connection_id not in lobby.members:
                raise ValidationError("Join the lobby as a member first", code="not_a_member")
            if not team_name:
                raise ValidationError("Team name must not be empty", code="invalid_team_name")

            current = lobby.team_for_connection(connection_id)
            existing = lobby.get_team(team_name)

            if current is not None and current.name == team_name:
                pass
            elif existing is not None:
                if existing.is_connected:
                    raise ValidationError(
                        f"Team name {team_name} is already taken", code="team_name_taken"
                    )
                if current is not None:
                    raise ValidationError(
                        f"This connection already plays as {current.name}", code="team_assigned"
                    )
                existing.connection_id = connection_id
                logger.info(f"Team {team_name} reconnected to lobby {lobby.id}")
            elif current is not None:
                if lobby.status != DraftStatus.WAITING:
                    raise ValidationError(
                        "Team names cannot change once the draft has started", code="team_locked"
                    )
                logger.info(f"Team {current.name} renamed to {team_name} in lobby {lobby.id}")
                current.name = team_name
            else:
                if len(lobby.teams) >= 2:
                    raise ValidationError("This lobby already has two teams", code="lobby_full")
                lobby.teams.append(
                    TeamSlot(name=team_name, arrival=lobby.next_arrival, connection_id=connection_id)
                )
                lobby.next_arrival += 1
                logger.info(f"Team {team_name} registered in lobby {lobby.id}")

            events = [teams_event(lobby)]
            if not lobby.admin and lobby.status == DraftStatus.WAITING and len(lobby.teams) == 2:
                _, start_events = DraftEngine.start_draft(lobby, self._rng, self._clock)
                events.extend(start_events)
            return lobby, events

        return await self._mutate(lobby_id, operation)

    async def start_draft(self, lobby_id: str) -> tuple[Lobby, list[DraftEvent]]:
        """Start the draft explicitly (administrator lobbies)."""

        def operation(lobby: Lobby) -> tuple[Lobby, list[DraftEvent]]:
            return DraftEngine.start_draft(lobby, self._rng, self._clock)

        return await self._mutate(lobby_id, operation)

    def _authorize_team(self, lobby: Lobby, connection_id: str, team: str) -> None:
        """Loosely check that the caller may speak for ``team``.

        The caller must be a member. With strict turns the caller's
        connection must also hold the named team's slot.
        """
        if connection_id not in lobby.members:
            raise ValidationError("Only lobby members can act", code="not_a_member")
        if lobby.options.strict_turns:
            slot = lobby.team_for_connection(connection_id)
            if slot is None or slot.name != team:
                raise ValidationError(f"This connection does not play as {team}", code="team_mismatch")

    async def apply_action(
        self,
        lobby_id: str,
        connection_id: str,
        team: str,
        action: DraftAction,
    ) -> tuple[Lobby, list[DraftEvent]]:
        """Apply a ban/pick/mode action submitted by a connection."""

        def operation(lobby: Lobby) -> tuple[Lobby, list[DraftEvent]]:
            self._authorize_team(lobby, connection_id, team)
            return DraftEngine.apply_action(lobby, team, action)

        return await self._mutate(lobby_id, operation)

    async def propose_winner(
        self,
        lobby_id: str,
        connection_id: str,
        proposing_team: str,
        winner: str,
    ) -> tuple[Lobby, list[DraftEvent]]:
        """Propose the winner of the current arena round."""

        def operation(lobby: Lobby) -> tuple[Lobby, list[DraftEvent]]:
            self._authorize_team(lobby, connection_id, proposing_team)
            return propose_winner(lobby, proposing_team, winner)

        return await self._mutate(lobby_id, operation)

    async def confirm_winner(
        self,
        lobby_id: str,
        connection_id: str,
        confirming_team: str,
        winner: str,
        accepted: bool,
    ) -> tuple[Lobby, list[DraftEvent]]:
        """Confirm or reject the pending arena winner proposal."""

        def operation(lobby: Lobby) -> tuple[Lobby, list[DraftEvent]]:
            self._authorize_team(lobby, connection_id, confirming_team)
            return confirm_winner(lobby, confirming_team, winner, accepted)

        return await self._mutate(lobby_id, operation)

    async def disconnect(
        self, connection_id: str
    ) -> list[tuple[str, Lobby | None, list[DraftEvent]]]:
        """Remove a connection from every lobby it joined.

        Before the draft starts the connection's team slot is released.
        Afterwards the slot is kept (disconnected) so the team can reclaim
        it. A non-admin lobby left without members is deleted.

        Args:
            connection_id: The departing connection

        Returns:
            List of (lobby_id, updated Lobby or None if deleted, events)
        """
        results: list[tuple[str, Lobby | None, list[DraftEvent]]] = []

        for lobby_id in self._connection_lobbies.pop(connection_id, set()):

            def operation(lobby: Lobby) -> tuple[Lobby, list[DraftEvent]]:
                lobby.members.discard(connection_id)
                lobby.observers.discard(connection_id)
                slot = lobby.team_for_connection(connection_id)
                if slot is None:
                    return lobby, []
                if lobby.status == DraftStatus.WAITING:
                    lobby.teams.remove(slot)
                else:
                    slot.connection_id = None
                return lobby, [teams_event(lobby)]

            try:
                lobby, events = await self._mutate(lobby_id, operation)
            except NotFoundError:
                continue

            if not lobby.members and not lobby.admin:
                async with self._lock:
                    self._delete_lobby_internal(lobby_id)
                logger.info(f"Lobby {lobby_id} deleted as it has no more members")
                results.append((lobby_id, None, []))
            else:
                results.append((lobby_id, lobby, events))

        logger.info(f"Connection {connection_id} disconnected")
        return results
