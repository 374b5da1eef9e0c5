"""Draft orchestration module for map veto sessions."""

from mapveto.draft.engine import (
    DraftAction,
    DraftEngine,
    DraftEvent,
    DraftEventType,
)
from mapveto.draft.errors import (
    ConfigurationError,
    DraftError,
    NotFoundError,
    ValidationError,
)
from mapveto.draft.rounds import confirm_winner, propose_winner, round_wins
from mapveto.draft.rules import (
    DraftFormat,
    GameFamily,
    GameTitle,
    StepKind,
    rule_table,
)
from mapveto.draft.state import (
    ActionRecord,
    ArenaDraft,
    DraftStatus,
    FpsDraft,
    Lobby,
    LobbyOptions,
    ParticipantRole,
    RoundRecord,
    TeamSlot,
)
from mapveto.draft.turns import Turn, flip_coin, resolve_actor, resolve_priority

__all__ = [
    # Rules
    "DraftFormat",
    "GameFamily",
    "GameTitle",
    "StepKind",
    "rule_table",
    # State
    "ActionRecord",
    "ArenaDraft",
    "DraftStatus",
    "FpsDraft",
    "Lobby",
    "LobbyOptions",
    "ParticipantRole",
    "RoundRecord",
    "TeamSlot",
    # Turns
    "Turn",
    "flip_coin",
    "resolve_actor",
    "resolve_priority",
    # Engine
    "DraftAction",
    "DraftEngine",
    "DraftEvent",
    "DraftEventType",
    # Rounds
    "confirm_winner",
    "propose_winner",
    "round_wins",
    # Errors
    "ConfigurationError",
    "DraftError",
    "NotFoundError",
    "ValidationError",
]
