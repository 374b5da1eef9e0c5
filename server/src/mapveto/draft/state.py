"""Draft session state.

A Lobby is the aggregate root of one draft session. The family-specific
part of the state lives in a tagged payload (FpsDraft or ArenaDraft) and
code dispatches on ``lobby.draft.family`` rather than probing fields.
"""

import copy
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from mapveto.draft.rules import (
    DraftFormat,
    GameFamily,
    GameTitle,
    StepKind,
    rule_table,
)

# Acting team recorded for the automatically resolved decider map
DECIDER_TEAM = ""
DECIDER_SIDE = "DECIDER"


class DraftStatus(Enum):
    """Lifecycle of a draft session."""

    WAITING = "waiting"  # Teams gathering, priority not resolved yet
    DRAFTING = "drafting"  # Bans/picks in progress
    AWAITING_WINNER = "awaiting_winner"  # Arena: round drafted, no winner proposed
    AWAITING_CONFIRMATION = "awaiting_confirmation"  # Arena: proposal pending
    COMPLETE = "complete"  # FPS: terminal


class ParticipantRole(Enum):
    """Role a connection holds in a lobby."""

    MEMBER = "member"
    OBSERVER = "observer"


@dataclass(frozen=True)
class ActionRecord:
    """A ban or pick recorded during a draft.

    Attributes:
        candidate: Map or mode name
        team: Acting team ("" for an automatically resolved decider)
        round_number: Arena round the action belongs to (None for FPS)
        side: Side chosen for a picked FPS map
        side_team: Team that chose the side
    """

    candidate: str
    team: str
    round_number: int | None = None
    side: str | None = None
    side_team: str | None = None

    @property
    def is_decider(self) -> bool:
        return self.side == DECIDER_SIDE

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"candidate": self.candidate, "team": self.team}
        if self.round_number is not None:
            data["roundNumber"] = self.round_number
        if self.side is not None:
            data["side"] = self.side
            data["sideTeam"] = self.side_team
        return data


@dataclass(frozen=True)
class RoundRecord:
    """Archive of one confirmed arena round. Never mutated once appended."""

    round_number: int
    winner: str
    picks: tuple[ActionRecord, ...]
    banned_modes: tuple[ActionRecord, ...]
    picked_mode: ActionRecord | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "roundNumber": self.round_number,
            "winner": self.winner,
            "picks": [p.to_dict() for p in self.picks],
            "bannedModes": [m.to_dict() for m in self.banned_modes],
            "pickedMode": self.picked_mode.to_dict() if self.picked_mode else None,
        }


@dataclass(frozen=True)
class WinnerProposal:
    """A winner claim awaiting the other team's confirmation."""

    proposed_winner: str
    proposing_team: str


@dataclass(frozen=True)
class PendingPick:
    """A map nominated on a multi-game FPS format, awaiting the side choice."""

    candidate: str
    team: str


@dataclass
class TeamSlot:
    """An active team.

    The slot outlives its connection: a team that disconnects keeps its
    name and turn until a connection submits the same name again.

    Attributes:
        name: Team label
        arrival: Sequence number stamped when the team first registered
        connection_id: Connection currently holding the slot (None if gone)
    """

    name: str
    arrival: int
    connection_id: str | None = None

    @property
    def is_connected(self) -> bool:
        return self.connection_id is not None


@dataclass
class LobbyOptions:
    """Options fixed at lobby creation.

    Attributes:
        coin_flip: Resolve the priority team by coin flip instead of arrival order
        knife_decider: Auto-resolve the FPS decider map (BO3/BO5 only)
        pool_size: FPS map pool size (4 or 7)
        modes_size: Number of arena modes in play (2 or 4)
        custom_map_pool: Replacement FPS map pool
        strict_turns: Reject actions from a team that does not hold the turn
    """

    coin_flip: bool = True
    knife_decider: bool = False
    pool_size: int = 7
    modes_size: int = 4
    custom_map_pool: list[str] | None = None
    strict_turns: bool = True


@dataclass
class FpsDraft:
    """FPS-family payload.

    Attributes:
        map_pool: Maps selected for this session, in display order
        start_cursor: Cursor position the draft begins at (7 - pool size)
        knife_decider: Whether the decider step resolves automatically
        pending_pick: Nomination waiting for the opponent's side choice
    """

    map_pool: tuple[str, ...]
    start_cursor: int
    knife_decider: bool = False
    pending_pick: PendingPick | None = None
    family: Literal[GameFamily.FPS] = GameFamily.FPS


@dataclass
class ArenaDraft:
    """Arena-family payload.

    Attributes:
        modes_size: Number of modes in play
        mode_pool: Modes in play at the start of every round
        mode_maps: Maps valid under each mode
        active_modes: Modes still eligible this round
        banned_modes: Mode bans this round
        picked_mode: Mode picked this round
        round_number: Current round (1-based)
        round_history: Append-only archive of confirmed rounds
        last_round_winner: Winner of the most recently confirmed round
        pending_winner_proposal: Proposal awaiting confirmation
    """

    modes_size: int
    mode_pool: tuple[str, ...]
    mode_maps: dict[str, tuple[str, ...]]
    active_modes: list[str] = field(default_factory=list)
    banned_modes: list[ActionRecord] = field(default_factory=list)
    picked_mode: ActionRecord | None = None
    round_number: int = 1
    round_history: list[RoundRecord] = field(default_factory=list)
    last_round_winner: str | None = None
    pending_winner_proposal: WinnerProposal | None = None
    family: Literal[GameFamily.ARENA] = GameFamily.ARENA


@dataclass
class Lobby:
    """A draft session.

    Attributes:
        id: Session identifier, unique in the lobby store
        title: Game title
        format: Match format
        options: Creation options
        draft: Family-specific payload
        admin: Created by an administrator (persists with zero members)
        members: Connection ids joined as members
        observers: Connection ids joined as observers
        teams: Active team slots (at most two), in arrival order
        status: Session lifecycle status
        priority_team: Team that acts first (per session or per round)
        coin_flip_result: Index of the coin flip outcome (None without a flip)
        active_pool: Candidates still eligible in the current map layer
        step_cursor: Index into the current rule table
        bans: Map bans (current round for the arena family)
        picks: Map picks (current round for the arena family)
        version: Incremented on every committed mutation
        created_at: Creation timestamp
    """

    id: str
    title: GameTitle
    format: DraftFormat
    options: LobbyOptions
    draft: FpsDraft | ArenaDraft
    admin: bool = False
    members: set[str] = field(default_factory=set)
    observers: set[str] = field(default_factory=set)
    teams: list[TeamSlot] = field(default_factory=list)
    status: DraftStatus = DraftStatus.WAITING
    priority_team: str | None = None
    coin_flip_result: int | None = None
    active_pool: list[str] = field(default_factory=list)
    step_cursor: int = 0
    bans: list[ActionRecord] = field(default_factory=list)
    picks: list[ActionRecord] = field(default_factory=list)
    version: int = 0
    next_arrival: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def family(self) -> GameFamily:
        return self.draft.family

    @property
    def rules(self) -> tuple[StepKind, ...]:
        """Get the rule table currently in force."""
        if isinstance(self.draft, ArenaDraft):
            return rule_table(
                self.title, self.format, self.draft.round_number, self.draft.modes_size
            )
        return rule_table(self.title, self.format)

    @property
    def is_terminal(self) -> bool:
        """Check if no further ban/pick is legal in the current draft."""
        return self.step_cursor >= len(self.rules)

    @property
    def team_names(self) -> list[str]:
        """Get team names in arrival order."""
        return [slot.name for slot in sorted(self.teams, key=lambda s: s.arrival)]

    def get_team(self, name: str) -> TeamSlot | None:
        for slot in self.teams:
            if slot.name == name:
                return slot
        return None

    def team_for_connection(self, connection_id: str) -> TeamSlot | None:
        for slot in self.teams:
            if slot.connection_id == connection_id:
                return slot
        return None

    def opponent_of(self, team: str) -> str | None:
        """Get the name of the other active team."""
        for name in self.team_names:
            if name != team:
                return name
        return None

    def copy(self) -> "Lobby":
        """Create a deep copy of the lobby."""
        return copy.deepcopy(self)
