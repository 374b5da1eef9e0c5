"""WebSocket protocol message types.

Messages are JSON objects with a ``type`` field. Field names travel in
camelCase on the wire (``lobbyId``, ``proposingTeam``) and are exposed in
snake_case in Python.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from mapveto.draft.rules import DraftFormat, GameTitle
from mapveto.draft.state import ParticipantRole


class ServerMessageType(Enum):
    """Types of messages sent from server to client."""

    CONNECTED = "connected"
    SESSION_CREATED = "session_created"
    SESSION_CREATION_ERROR = "session_creation_error"
    LOBBY_STATE = "lobby_state"
    TEAMS_UPDATED = "teams_updated"
    COIN_FLIP_RESULT = "coin_flip_result"
    DRAFT_STARTED = "draft_started"
    TURN_ENABLED = "turn_enabled"
    STATE_MESSAGE = "state_message"
    BANS_UPDATED = "bans_updated"
    PICKS_UPDATED = "picks_updated"
    PICK_NOMINATED = "pick_nominated"
    MODE_STATE_UPDATED = "mode_state_updated"
    MAP_POOL_UPDATED = "map_pool_updated"
    DRAFT_COMPLETE = "draft_complete"
    ROUND_COMPLETE = "round_complete"
    WINNER_PROPOSED = "winner_proposed"
    WINNER_REJECTED = "winner_rejected"
    WINNER_CONFIRMED = "winner_confirmed"
    ROUND_STARTED = "round_started"
    PATTERN = "pattern"
    LOBBY_DELETED = "lobby_deleted"
    CLEAR = "clear"
    BAN_REPLAY = "ban_replay"
    PICK_REPLAY = "pick_replay"
    PONG = "pong"
    ERROR = "error"


class ClientMessageType(Enum):
    """Types of messages sent from client to server."""

    CREATE_SESSION = "create_session"
    JOIN_SESSION = "join_session"
    TEAM_NAME = "team_name"
    START = "start"
    BAN = "ban"
    PICK = "pick"
    MODE_BAN = "mode_ban"
    MODE_PICK = "mode_pick"
    PROPOSE_WINNER = "propose_winner"
    CONFIRM_WINNER = "confirm_winner"
    GET_PATTERN = "get_pattern"
    DELETE = "delete"
    CLEAR = "clear"
    PLAY = "play"
    REPLAY = "replay"
    PING = "ping"


class WireModel(BaseModel):
    """Base model for all protocol messages (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# Server -> Client Messages


class ConnectedMessage(WireModel):
    """Sent once when the WebSocket is accepted."""

    type: str = "connected"
    connection_id: str


class SessionCreatedMessage(WireModel):
    """Sent to the creator when a lobby has been created."""

    type: str = "session_created"
    lobby_id: str
    lobby: dict[str, Any]


class SessionCreationErrorMessage(WireModel):
    """Sent to the creator when a lobby could not be created."""

    type: str = "session_creation_error"
    code: str
    message: str


class LobbyStateMessage(WireModel):
    """Full lobby snapshot, sent on join and after membership changes."""

    type: str = "lobby_state"
    lobby: dict[str, Any]


class TeamsUpdatedMessage(WireModel):
    type: str = "teams_updated"
    teams: list[dict[str, Any]]


class CoinFlipResultMessage(WireModel):
    """Outcome of the coin flip that decided the priority team."""

    type: str = "coin_flip_result"
    result: int
    team: str


class DraftStartedMessage(WireModel):
    type: str = "draft_started"
    priority_team: str
    coin_flip: bool


class TurnEnabledMessage(WireModel):
    """Tells clients which team may act and which kind of action is expected."""

    type: str = "turn_enabled"
    team: str
    action: str
    awaiting_side: bool = False
    step_cursor: int
    ban_number: int | None = None
    ban_count: int | None = None


class StateMessage(WireModel):
    """Human-readable description of what is happening."""

    type: str = "state_message"
    message: str


class BansUpdatedMessage(WireModel):
    type: str = "bans_updated"
    bans: list[dict[str, Any]]


class PicksUpdatedMessage(WireModel):
    type: str = "picks_updated"
    picks: list[dict[str, Any]]


class PickNominatedMessage(WireModel):
    """A map was nominated; ``side_team`` must choose the side."""

    type: str = "pick_nominated"
    candidate: str
    team: str
    side_team: str | None


class ModeStateUpdatedMessage(WireModel):
    type: str = "mode_state_updated"
    banned: list[dict[str, Any]]
    active: list[str]
    picked: dict[str, Any] | None = None
    modes_size: int


class MapPoolUpdatedMessage(WireModel):
    type: str = "map_pool_updated"
    maps: list[str]


class DraftCompleteMessage(WireModel):
    """Terminal signal for FPS drafts."""

    type: str = "draft_complete"
    picks: list[dict[str, Any]]


class RoundCompleteMessage(WireModel):
    """An arena round has been drafted and awaits a winner."""

    type: str = "round_complete"
    round_number: int
    picks: list[dict[str, Any]]


class WinnerProposedMessage(WireModel):
    type: str = "winner_proposed"
    winner: str
    proposing_team: str
    round_number: int


class WinnerRejectedMessage(WireModel):
    type: str = "winner_rejected"
    winner: str
    rejecting_team: str


class WinnerConfirmedMessage(WireModel):
    type: str = "winner_confirmed"
    winner: str
    round_number: int
    history: list[dict[str, Any]]
    wins: dict[str, int]


class RoundStartedMessage(WireModel):
    type: str = "round_started"
    round_number: int
    priority_team: str


class PatternMessage(WireModel):
    """The lobby's current rule table."""

    type: str = "pattern"
    pattern: list[str]
    step_cursor: int


class LobbyDeletedMessage(WireModel):
    type: str = "lobby_deleted"
    lobby_id: str


class ClearDisplayMessage(WireModel):
    """Tells observers to wipe their display."""

    type: str = "clear"


class BanReplayMessage(WireModel):
    """One ban record re-sent during a replay."""

    type: str = "ban_replay"
    ban: dict[str, Any]


class PickReplayMessage(WireModel):
    """One pick record re-sent during a replay."""

    type: str = "pick_replay"
    pick: dict[str, Any]


class PongMessage(WireModel):
    """Response to ping."""

    type: str = "pong"


class ErrorMessage(WireModel):
    """Error message, sent only to the connection that caused it."""

    type: str = "error"
    code: str
    message: str


# Client -> Server Messages


class CreateSessionMessage(WireModel):
    """Request to create a lobby."""

    type: str = "create_session"
    lobby_id: str | None = None
    title: GameTitle
    format: DraftFormat
    coin_flip: bool | None = None
    knife_decider: bool = False
    pool_size: int = 7
    modes_size: int = 4
    custom_map_pool: list[str] | None = None
    strict_turns: bool | None = None
    admin: bool = False


class JoinSessionMessage(WireModel):
    """Subscribe to a lobby as member or observer."""

    type: str = "join_session"
    lobby_id: str
    role: ParticipantRole = ParticipantRole.MEMBER


class TeamNameMessage(WireModel):
    """Claim a team slot."""

    type: str = "team_name"
    lobby_id: str
    name: str


class StartMessage(WireModel):
    """Start the draft of an administrator lobby."""

    type: str = "start"
    lobby_id: str


class BanMessage(WireModel):
    type: str = "ban"
    lobby_id: str
    candidate: str
    team: str


class PickMessage(WireModel):
    """Pick a map. ``side`` is required when choosing the side of a pick."""

    type: str = "pick"
    lobby_id: str
    candidate: str
    team: str
    side: str | None = None


class ModeBanMessage(WireModel):
    type: str = "mode_ban"
    lobby_id: str
    candidate: str
    team: str


class ModePickMessage(WireModel):
    type: str = "mode_pick"
    lobby_id: str
    candidate: str
    team: str


class ProposeWinnerMessage(WireModel):
    type: str = "propose_winner"
    lobby_id: str
    winner: str
    proposing_team: str


class ConfirmWinnerMessage(WireModel):
    type: str = "confirm_winner"
    lobby_id: str
    winner: str
    confirming_team: str
    accepted: bool


class GetPatternMessage(WireModel):
    type: str = "get_pattern"
    lobby_id: str


class DeleteMessage(WireModel):
    type: str = "delete"
    lobby_id: str


class ClearMessage(WireModel):
    """Ask observers of a lobby to wipe their display."""

    type: str = "clear"
    lobby_id: str


class PlayMessage(WireModel):
    """Ask observers of a lobby to redraw the full ban and pick lists."""

    type: str = "play"
    lobby_id: str


class ReplayMessage(WireModel):
    """Ask for the lobby's bans and picks to be replayed step by step."""

    type: str = "replay"
    lobby_id: str


class PingMessage(WireModel):
    """Keepalive ping."""

    type: str = "ping"


ClientMessage = (
    CreateSessionMessage
    | JoinSessionMessage
    | TeamNameMessage
    | StartMessage
    | BanMessage
    | PickMessage
    | ModeBanMessage
    | ModePickMessage
    | ProposeWinnerMessage
    | ConfirmWinnerMessage
    | GetPatternMessage
    | DeleteMessage
    | ClearMessage
    | PlayMessage
    | ReplayMessage
    | PingMessage
)

CLIENT_MESSAGE_MODELS: dict[str, type[WireModel]] = {
    ClientMessageType.CREATE_SESSION.value: CreateSessionMessage,
    ClientMessageType.JOIN_SESSION.value: JoinSessionMessage,
    ClientMessageType.TEAM_NAME.value: TeamNameMessage,
    ClientMessageType.START.value: StartMessage,
    ClientMessageType.BAN.value: BanMessage,
    ClientMessageType.PICK.value: PickMessage,
    ClientMessageType.MODE_BAN.value: ModeBanMessage,
    ClientMessageType.MODE_PICK.value: ModePickMessage,
    ClientMessageType.PROPOSE_WINNER.value: ProposeWinnerMessage,
    ClientMessageType.CONFIRM_WINNER.value: ConfirmWinnerMessage,
    ClientMessageType.GET_PATTERN.value: GetPatternMessage,
    ClientMessageType.DELETE.value: DeleteMessage,
    ClientMessageType.CLEAR.value: ClearMessage,
    ClientMessageType.PLAY.value: PlayMessage,
    ClientMessageType.REPLAY.value: ReplayMessage,
    ClientMessageType.PING.value: PingMessage,
}


def is_known_message_type(msg_type: Any) -> bool:
    """Check whether a client message type is recognized."""
    return isinstance(msg_type, str) and msg_type in CLIENT_MESSAGE_MODELS


def parse_client_message(data: dict[str, Any]) -> ClientMessage | None:
    """Parse a client message from JSON data.

    Args:
        data: Parsed JSON data

    Returns:
        Parsed message or None if invalid
    """
    model = CLIENT_MESSAGE_MODELS.get(data.get("type"))  # type: ignore[arg-type]
    if model is None:
        return None

    try:
        return model.model_validate(data)  # type: ignore[return-value]
    except PydanticValidationError:
        return None
