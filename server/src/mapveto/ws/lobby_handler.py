"""WebSocket gateway for lobby real-time communication.

Each connection gets an id when it is accepted. Connections subscribe to
lobbies ("rooms") by joining them, and every draft fact produced by the
lobby store is translated here into notifications for the room.
"""

import asyncio
import json
import logging
import secrets
from collections.abc import Coroutine
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from mapveto.draft.engine import DraftAction, DraftEvent, DraftEventType, turn_event
from mapveto.draft.errors import DraftError
from mapveto.draft.rounds import round_wins
from mapveto.draft.rules import MODE_LABELS, StepKind
from mapveto.draft.state import (
    DECIDER_SIDE,
    ArenaDraft,
    DraftStatus,
    FpsDraft,
    Lobby,
)
from mapveto.draft.turns import resolve_actor
from mapveto.lobby.manager import LobbyManager
from mapveto.ws.protocol import (
    BanMessage,
    BanReplayMessage,
    BansUpdatedMessage,
    ClearDisplayMessage,
    ClearMessage,
    CoinFlipResultMessage,
    ConfirmWinnerMessage,
    ConnectedMessage,
    CreateSessionMessage,
    DeleteMessage,
    DraftCompleteMessage,
    DraftStartedMessage,
    ErrorMessage,
    GetPatternMessage,
    JoinSessionMessage,
    LobbyDeletedMessage,
    LobbyStateMessage,
    MapPoolUpdatedMessage,
    ModeBanMessage,
    ModePickMessage,
    ModeStateUpdatedMessage,
    PatternMessage,
    PickMessage,
    PickNominatedMessage,
    PickReplayMessage,
    PicksUpdatedMessage,
    PingMessage,
    PlayMessage,
    PongMessage,
    ProposeWinnerMessage,
    ReplayMessage,
    RoundCompleteMessage,
    RoundStartedMessage,
    SessionCreatedMessage,
    SessionCreationErrorMessage,
    StartMessage,
    StateMessage,
    TeamNameMessage,
    TeamsUpdatedMessage,
    TurnEnabledMessage,
    WinnerConfirmedMessage,
    WinnerProposedMessage,
    WinnerRejectedMessage,
    is_known_message_type,
    parse_client_message,
)

logger = logging.getLogger(__name__)

ACTION_KINDS: dict[type, StepKind] = {
    BanMessage: StepKind.BAN,
    PickMessage: StepKind.PICK,
    ModeBanMessage: StepKind.MODE_BAN,
    ModePickMessage: StepKind.MODE_PICK,
}


def current_turn(lobby: Lobby) -> dict[str, Any] | None:
    """Serialize the current turn, or None when nobody may act."""
    if lobby.status != DraftStatus.DRAFTING:
        return None
    turn = resolve_actor(lobby)
    if turn is None:
        return None
    return {
        "team": turn.team,
        "action": turn.step_kind.value,
        "awaitingSide": turn.awaiting_side,
    }


def serialize_lobby(lobby: Lobby) -> dict[str, Any]:
    """Serialize a Lobby to JSON-compatible dict."""
    data: dict[str, Any] = {
        "id": lobby.id,
        "title": lobby.title.value,
        "family": lobby.family.value,
        "format": lobby.format.value,
        "admin": lobby.admin,
        "status": lobby.status.value,
        "options": {
            "coinFlip": lobby.options.coin_flip,
            "knifeDecider": lobby.options.knife_decider,
            "poolSize": lobby.options.pool_size,
            "modesSize": lobby.options.modes_size,
            "strictTurns": lobby.options.strict_turns,
        },
        "teams": [
            {"name": slot.name, "connected": slot.is_connected}
            for slot in sorted(lobby.teams, key=lambda s: s.arrival)
        ],
        "memberCount": len(lobby.members),
        "observerCount": len(lobby.observers),
        "priorityTeam": lobby.priority_team,
        "coinFlipResult": lobby.coin_flip_result,
        "activePool": list(lobby.active_pool),
        "stepCursor": lobby.step_cursor,
        "pattern": [kind.value for kind in lobby.rules],
        "bans": [record.to_dict() for record in lobby.bans],
        "picks": [record.to_dict() for record in lobby.picks],
        "turn": current_turn(lobby),
        "version": lobby.version,
        "createdAt": lobby.created_at.isoformat(),
    }

    draft = lobby.draft
    if isinstance(draft, FpsDraft):
        data["mapPool"] = list(draft.map_pool)
        data["pendingPick"] = (
            {"candidate": draft.pending_pick.candidate, "team": draft.pending_pick.team}
            if draft.pending_pick
            else None
        )
    elif isinstance(draft, ArenaDraft):
        proposal = draft.pending_winner_proposal
        data["modes"] = {
            "pool": list(draft.mode_pool),
            "active": list(draft.active_modes),
            "banned": [record.to_dict() for record in draft.banned_modes],
            "picked": draft.picked_mode.to_dict() if draft.picked_mode else None,
            "modesSize": draft.modes_size,
        }
        data["roundNumber"] = draft.round_number
        data["roundHistory"] = [record.to_dict() for record in draft.round_history]
        data["lastRoundWinner"] = draft.last_round_winner
        data["pendingWinnerProposal"] = (
            {"winner": proposal.proposed_winner, "proposingTeam": proposal.proposing_team}
            if proposal
            else None
        )
        data["wins"] = round_wins(lobby)

    return data


def describe_turn(turn: dict[str, Any], lobby: Lobby) -> str:
    """Build the human-readable state message for a turn."""
    team = turn["team"]
    action = turn["action"]

    if turn.get("awaitingSide"):
        draft = lobby.draft
        if isinstance(draft, FpsDraft) and draft.pending_pick is not None:
            return f"{team} are choosing a side on {draft.pending_pick.candidate}"
        return f"{team} are choosing a side"

    if action == StepKind.BAN.value:
        message = f"{team} are choosing a map to ban"
        if turn.get("banCount", 1) > 1:
            message += f" ({turn['banNumber']} of {turn['banCount']})"
        return message
    if action == StepKind.PICK.value:
        return f"{team} are choosing a map to pick"
    if action == StepKind.MODE_BAN.value:
        return f"{team} are choosing a mode to ban"
    if action == StepKind.MODE_PICK.value:
        return f"{team} are choosing a mode to play"
    return f"{team} are choosing"


def describe_pick(pick: dict[str, Any]) -> str | None:
    """Build the state message announcing a completed FPS pick."""
    side = pick.get("side")
    if side is None or side == DECIDER_SIDE:
        return None
    if pick.get("sideTeam") and pick["sideTeam"] != pick["team"]:
        return (
            f"{pick['team']} picked {pick['candidate']}, "
            f"{pick['sideTeam']} chose {side}"
        )
    return f"{pick['team']} picked {pick['candidate']} and chose {side}"


def draft_position(lobby: Lobby) -> tuple[Any, ...]:
    """The fields that decide whose turn it is and what they must do."""
    draft = lobby.draft
    pending = None
    round_number = None
    if isinstance(draft, FpsDraft) and draft.pending_pick is not None:
        pending = (draft.pending_pick.candidate, draft.pending_pick.team)
    elif isinstance(draft, ArenaDraft):
        round_number = draft.round_number
    return (lobby.status, lobby.step_cursor, lobby.priority_team, round_number, pending)


def replay_steps(lobby: Lobby) -> list[dict[str, Any]]:
    """Walk the rule table and collect the ban and pick records in draft order.

    Mode steps of arena lobbies are skipped, as are steps not reached yet.
    """
    draft = lobby.draft
    start = draft.start_cursor if isinstance(draft, FpsDraft) else 0
    bans = iter(lobby.bans)
    picks = iter(lobby.picks)

    steps: list[dict[str, Any]] = []
    for kind in lobby.rules[start:]:
        if kind == StepKind.BAN:
            record = next(bans, None)
            if record is not None:
                steps.append(BanReplayMessage(ban=record.to_dict()).to_dict())
        elif kind in (StepKind.PICK, StepKind.DECIDER):
            record = next(picks, None)
            if record is not None:
                steps.append(PickReplayMessage(pick=record.to_dict()).to_dict())
    return steps


class LobbyConnectionManager:
    """Manages WebSocket connections and lobby rooms.

    A connection may be subscribed to several lobbies. Rooms hold members
    and observers alike; the lobby store knows which is which.
    """

    def __init__(self) -> None:
        """Initialize the connection manager."""
        self.sockets: dict[str, WebSocket] = {}  # connection_id -> websocket
        self.rooms: dict[str, set[str]] = {}  # lobby_id -> connection ids
        self._lock = asyncio.Lock()

    async def connect(self, connection_id: str, websocket: WebSocket) -> None:
        """Accept a WebSocket and register it under ``connection_id``."""
        await websocket.accept()
        async with self._lock:
            self.sockets[connection_id] = websocket
        logger.info(f"Connection {connection_id} opened")

    async def disconnect(self, connection_id: str) -> None:
        """Forget a connection and remove it from every room."""
        async with self._lock:
            self.sockets.pop(connection_id, None)
            for lobby_id in list(self.rooms):
                self.rooms[lobby_id].discard(connection_id)
                # Clean up empty rooms
                if not self.rooms[lobby_id]:
                    del self.rooms[lobby_id]

    async def join_room(self, lobby_id: str, connection_id: str) -> None:
        async with self._lock:
            self.rooms.setdefault(lobby_id, set()).add(connection_id)

    async def send(self, connection_id: str, message: dict[str, Any]) -> None:
        """Send a message to a single connection.

        Args:
            connection_id: Target connection
            message: The message to send (will be JSON encoded)
        """
        await self.send_many({connection_id}, message)

    async def send_many(self, connection_ids: set[str], message: dict[str, Any]) -> None:
        """Send a message to a set of connections.

        Connections whose socket fails are dropped from the registry.
        """
        async with self._lock:
            targets = [
                (cid, self.sockets[cid]) for cid in connection_ids if cid in self.sockets
            ]

        if not targets:
            return

        data = json.dumps(message)
        failed: list[str] = []

        for connection_id, websocket in targets:
            try:
                await websocket.send_text(data)
            except Exception as e:
                logger.warning(f"Failed to send to connection {connection_id}: {e}")
                failed.append(connection_id)

        # Clean up disconnected clients
        for connection_id in failed:
            await self.disconnect(connection_id)

    async def broadcast(self, lobby_id: str, message: dict[str, Any]) -> None:
        """Broadcast a message to every connection subscribed to a lobby.

        Args:
            lobby_id: The lobby id
            message: The message to send (will be JSON encoded)
        """
        async with self._lock:
            connection_ids = set(self.rooms.get(lobby_id, set()))
        await self.send_many(connection_ids, message)

    def has_connections(self, lobby_id: str) -> bool:
        """Check if a lobby room has any connections."""
        return bool(self.rooms.get(lobby_id))

    async def remove_lobby(self, lobby_id: str) -> None:
        """Remove the room of a lobby (used when the lobby is deleted)."""
        async with self._lock:
            self.rooms.pop(lobby_id, None)


class LobbyGateway:
    """Session gateway between WebSocket clients and the lobby store.

    Inbound messages are validated, turned into store operations, and the
    facts those operations return are published to the lobby's room. Any
    DraftError becomes an error message for the caller only.
    """

    def __init__(
        self,
        manager: LobbyManager,
        connections: LobbyConnectionManager | None = None,
        coin_flip_reveal_seconds: float = 3.0,
        replay_step_seconds: float = 5.0,
    ) -> None:
        self.manager = manager
        self.connections = connections or LobbyConnectionManager()
        self.coin_flip_reveal_seconds = coin_flip_reveal_seconds
        self.replay_step_seconds = replay_step_seconds
        self._scheduled_tasks: set[asyncio.Task[None]] = set()

    async def close(self) -> None:
        """Cancel pending delayed reveals and replays."""
        for task in list(self._scheduled_tasks):
            task.cancel()
        if self._scheduled_tasks:
            await asyncio.gather(*self._scheduled_tasks, return_exceptions=True)
        self._scheduled_tasks.clear()

    def _schedule(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.create_task(coro)
        self._scheduled_tasks.add(task)
        task.add_done_callback(self._scheduled_tasks.discard)
        return task

    async def handle_websocket(self, websocket: WebSocket) -> None:
        """Handle a WebSocket connection until it closes.

        Args:
            websocket: The WebSocket connection
        """
        connection_id = secrets.token_hex(8)
        await self.connections.connect(connection_id, websocket)
        await self.connections.send(
            connection_id, ConnectedMessage(connection_id=connection_id).to_dict()
        )

        try:
            while True:
                # Receive message
                try:
                    data = await websocket.receive_text()
                except WebSocketDisconnect:
                    break

                # Parse message
                try:
                    msg_data = json.loads(data)
                except json.JSONDecodeError:
                    await self._send_error(connection_id, "invalid_json", "Invalid JSON")
                    continue

                # Handle message
                await self._handle_message(connection_id, msg_data)

        except Exception as e:
            logger.exception(f"Error in lobby WebSocket handler for {connection_id}: {e}")
        finally:
            await self.connections.disconnect(connection_id)
            await self._handle_disconnect(connection_id)

    async def _send_error(self, connection_id: str, code: str, message: str) -> None:
        await self.connections.send(
            connection_id, ErrorMessage(code=code, message=message).to_dict()
        )

    async def _handle_message(self, connection_id: str, data: Any) -> None:
        """Validate and dispatch one inbound message.

        Args:
            connection_id: The sending connection
            data: The parsed JSON payload
        """
        if not isinstance(data, dict):
            await self._send_error(connection_id, "invalid_message", "Message must be an object")
            return

        msg_type = data.get("type")
        if not is_known_message_type(msg_type):
            await self._send_error(
                connection_id, "unknown_message", f"Unknown message type: {msg_type}"
            )
            return

        message = parse_client_message(data)
        if message is None:
            await self._send_error(
                connection_id, "invalid_message", f"Invalid {msg_type} message"
            )
            return

        if isinstance(message, PingMessage):
            await self.connections.send(connection_id, PongMessage().to_dict())
            return

        try:
            await self._dispatch(connection_id, message)
        except DraftError as e:
            logger.warning(f"Rejected {msg_type} from {connection_id}: {e.code} ({e.message})")
            if isinstance(message, CreateSessionMessage):
                error = SessionCreationErrorMessage(code=e.code, message=e.message)
                await self.connections.send(connection_id, error.to_dict())
            else:
                await self._send_error(connection_id, e.code, e.message)

    async def _dispatch(self, connection_id: str, message: Any) -> None:
        manager = self.manager

        if isinstance(message, CreateSessionMessage):
            options = manager.build_options(
                coin_flip=message.coin_flip,
                knife_decider=message.knife_decider,
                pool_size=message.pool_size,
                modes_size=message.modes_size,
                custom_map_pool=message.custom_map_pool,
                strict_turns=message.strict_turns,
            )
            lobby = await manager.create_lobby(
                message.title,
                message.format,
                options,
                lobby_id=message.lobby_id,
                admin=message.admin,
            )
            await self.connections.send(
                connection_id,
                SessionCreatedMessage(lobby_id=lobby.id, lobby=serialize_lobby(lobby)).to_dict(),
            )

        elif isinstance(message, JoinSessionMessage):
            lobby = await manager.join_lobby(message.lobby_id, connection_id, message.role)
            await self.connections.join_room(lobby.id, connection_id)
            await self.connections.send(
                connection_id, LobbyStateMessage(lobby=serialize_lobby(lobby)).to_dict()
            )

        elif isinstance(message, TeamNameMessage):
            lobby, events = await manager.set_team_name(
                message.lobby_id, connection_id, message.name
            )
            await self.publish(lobby, events)

        elif isinstance(message, StartMessage):
            lobby, events = await manager.start_draft(message.lobby_id)
            await self.publish(lobby, events)

        elif type(message) in ACTION_KINDS:
            action = DraftAction(
                kind=ACTION_KINDS[type(message)],
                candidate=message.candidate,
                side=getattr(message, "side", None),
            )
            lobby, events = await manager.apply_action(
                message.lobby_id, connection_id, message.team, action
            )
            await self.publish(lobby, events)

        elif isinstance(message, ProposeWinnerMessage):
            lobby, events = await manager.propose_winner(
                message.lobby_id, connection_id, message.proposing_team, message.winner
            )
            await self.publish(lobby, events)

        elif isinstance(message, ConfirmWinnerMessage):
            lobby, events = await manager.confirm_winner(
                message.lobby_id,
                connection_id,
                message.confirming_team,
                message.winner,
                message.accepted,
            )
            await self.publish(lobby, events)

        elif isinstance(message, GetPatternMessage):
            lobby = manager.require_lobby(message.lobby_id)
            pattern = PatternMessage(
                pattern=[kind.value for kind in lobby.rules], step_cursor=lobby.step_cursor
            )
            await self.connections.send(connection_id, pattern.to_dict())

        elif isinstance(message, DeleteMessage):
            manager.require_lobby(message.lobby_id)
            await self.delete_lobby(message.lobby_id)

        elif isinstance(message, ClearMessage):
            lobby = manager.require_lobby(message.lobby_id)
            await self.connections.send_many(lobby.observers, ClearDisplayMessage().to_dict())

        elif isinstance(message, PlayMessage):
            lobby = manager.require_lobby(message.lobby_id)
            bans = [record.to_dict() for record in lobby.bans]
            picks = [record.to_dict() for record in lobby.picks]
            await self.connections.send_many(
                lobby.observers, BansUpdatedMessage(bans=bans).to_dict()
            )
            await self.connections.send_many(
                lobby.observers, PicksUpdatedMessage(picks=picks).to_dict()
            )

        elif isinstance(message, ReplayMessage):
            self.start_replay(message.lobby_id)

    async def delete_lobby(self, lobby_id: str) -> bool:
        """Notify a lobby's room, then delete the lobby and its room.

        Returns:
            True if the lobby existed
        """
        if self.manager.get_lobby(lobby_id) is None:
            return False
        await self.connections.broadcast(lobby_id, LobbyDeletedMessage(lobby_id=lobby_id).to_dict())
        deleted = await self.manager.delete_lobby(lobby_id)
        await self.connections.remove_lobby(lobby_id)
        return deleted

    async def _handle_disconnect(self, connection_id: str) -> None:
        """Release a closed connection from the lobbies it joined."""
        for lobby_id, lobby, events in await self.manager.disconnect(connection_id):
            if lobby is None:
                await self.connections.remove_lobby(lobby_id)
                continue
            await self.publish(lobby, events)

    async def publish(self, lobby: Lobby, events: list[DraftEvent]) -> None:
        """Translate draft facts into notifications for the lobby's room.

        Facts following a coin flip are held back for the configured reveal
        delay so clients can animate the flip.
        """
        for index, event in enumerate(events):
            await self._publish_event(lobby, event)

            if event.type == DraftEventType.COIN_FLIP and self.coin_flip_reveal_seconds > 0:
                remaining = events[index + 1 :]
                if remaining:
                    self._schedule(self._delayed_reveal(lobby, remaining))
                return

    async def _delayed_reveal(self, lobby: Lobby, events: list[DraftEvent]) -> None:
        await asyncio.sleep(self.coin_flip_reveal_seconds)

        current = self.manager.get_lobby(lobby.id)
        if current is None:
            return
        if draft_position(current) == draft_position(lobby):
            for event in events:
                await self._publish_event(current, event)
            return

        # The draft moved on during the delay; the held facts are stale
        await self.connections.broadcast(
            lobby.id, LobbyStateMessage(lobby=serialize_lobby(current)).to_dict()
        )
        turn = resolve_actor(current) if current.status == DraftStatus.DRAFTING else None
        if turn is not None:
            description = describe_turn(turn_event(current, turn).data, current)
            await self.connections.broadcast(
                lobby.id, StateMessage(message=description).to_dict()
            )

    def start_replay(self, lobby_id: str) -> asyncio.Task[None]:
        """Schedule a paced replay of a lobby's bans and picks to its room.

        Raises:
            NotFoundError: If the lobby doesn't exist
        """
        lobby = self.manager.require_lobby(lobby_id)
        steps = replay_steps(lobby)
        logger.info(f"Replaying {len(steps)} steps in lobby {lobby_id}")
        return self._schedule(self._replay(lobby_id, steps))

    async def _replay(self, lobby_id: str, steps: list[dict[str, Any]]) -> None:
        for message in steps:
            await asyncio.sleep(self.replay_step_seconds)
            await self.connections.broadcast(lobby_id, message)

    async def _publish_event(self, lobby: Lobby, event: DraftEvent) -> None:
        data = event.data
        broadcast = self.connections.broadcast
        room = lobby.id

        if event.type == DraftEventType.TEAMS_UPDATED:
            await broadcast(room, TeamsUpdatedMessage(teams=data["teams"]).to_dict())

        elif event.type == DraftEventType.COIN_FLIP:
            await broadcast(
                room, CoinFlipResultMessage(result=data["result"], team=data["team"]).to_dict()
            )

        elif event.type == DraftEventType.DRAFT_STARTED:
            await broadcast(
                room,
                DraftStartedMessage(
                    priority_team=data["priorityTeam"], coin_flip=data["coinFlip"]
                ).to_dict(),
            )

        elif event.type == DraftEventType.TURN_CHANGED:
            await broadcast(
                room,
                TurnEnabledMessage(
                    team=data["team"],
                    action=data["action"],
                    awaiting_side=data["awaitingSide"],
                    step_cursor=data["stepCursor"],
                    ban_number=data.get("banNumber"),
                    ban_count=data.get("banCount"),
                ).to_dict(),
            )
            await broadcast(room, StateMessage(message=describe_turn(data, lobby)).to_dict())

        elif event.type == DraftEventType.BANS_UPDATED:
            await broadcast(room, BansUpdatedMessage(bans=data["bans"]).to_dict())

        elif event.type == DraftEventType.PICKS_UPDATED:
            await broadcast(room, PicksUpdatedMessage(picks=data["picks"]).to_dict())
            if data["picks"] and isinstance(lobby.draft, FpsDraft):
                description = describe_pick(data["picks"][-1])
                if description:
                    await broadcast(room, StateMessage(message=description).to_dict())

        elif event.type == DraftEventType.PICK_NOMINATED:
            await broadcast(
                room,
                PickNominatedMessage(
                    candidate=data["candidate"], team=data["team"], side_team=data["sideTeam"]
                ).to_dict(),
            )

        elif event.type == DraftEventType.DECIDER_RESOLVED:
            await broadcast(
                room, StateMessage(message=f"{data['candidate']} is the decider").to_dict()
            )

        elif event.type == DraftEventType.MODES_UPDATED:
            await broadcast(
                room,
                ModeStateUpdatedMessage(
                    banned=data["banned"],
                    active=data["active"],
                    picked=data["picked"],
                    modes_size=data["modesSize"],
                ).to_dict(),
            )
            if data["picked"]:
                mode = data["picked"]["candidate"]
                label = MODE_LABELS.get(mode, mode)
                await broadcast(
                    room,
                    StateMessage(message=f"{data['picked']['team']} picked {label}").to_dict(),
                )

        elif event.type == DraftEventType.MAP_POOL_UPDATED:
            await broadcast(room, MapPoolUpdatedMessage(maps=data["maps"]).to_dict())

        elif event.type == DraftEventType.DRAFT_COMPLETE:
            await broadcast(room, DraftCompleteMessage(picks=data["picks"]).to_dict())
            await broadcast(room, StateMessage(message="The draft is complete").to_dict())

        elif event.type == DraftEventType.ROUND_DRAFTED:
            await broadcast(
                room,
                RoundCompleteMessage(
                    round_number=data["roundNumber"], picks=data["picks"]
                ).to_dict(),
            )
            await broadcast(
                room,
                StateMessage(
                    message=f"Round {data['roundNumber']} is drafted, report the winner"
                ).to_dict(),
            )

        elif event.type == DraftEventType.WINNER_PROPOSED:
            # Only the team that has to answer receives the proposal itself
            recipient = lobby.get_team(data["recipientTeam"] or "")
            if recipient is not None and recipient.connection_id is not None:
                await self.connections.send(
                    recipient.connection_id,
                    WinnerProposedMessage(
                        winner=data["winner"],
                        proposing_team=data["proposingTeam"],
                        round_number=data["roundNumber"],
                    ).to_dict(),
                )
            await broadcast(
                room,
                StateMessage(
                    message=f"{data['proposingTeam']} reported {data['winner']} as the winner"
                ).to_dict(),
            )

        elif event.type == DraftEventType.WINNER_REJECTED:
            await broadcast(
                room,
                WinnerRejectedMessage(
                    winner=data["winner"], rejecting_team=data["rejectingTeam"]
                ).to_dict(),
            )

        elif event.type == DraftEventType.WINNER_CONFIRMED:
            await broadcast(
                room,
                WinnerConfirmedMessage(
                    winner=data["winner"],
                    round_number=data["roundNumber"],
                    history=data["history"],
                    wins=round_wins(lobby),
                ).to_dict(),
            )

        elif event.type == DraftEventType.ROUND_STARTED:
            await broadcast(
                room,
                RoundStartedMessage(
                    round_number=data["roundNumber"], priority_team=data["priorityTeam"]
                ).to_dict(),
            )

        else:
            logger.warning(f"No notification for draft event {event.type.value}")
