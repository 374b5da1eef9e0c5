"""Core draft engine.

State is mutated in place, mirroring how actions are applied one at a
time. Every operation validates fully before touching the lobby and
returns the lobby together with the facts that changed (DraftEvent list).
Turning those facts into network messages is the gateway's job.
"""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from mapveto.draft.errors import ConfigurationError, ValidationError
from mapveto.draft.rules import (
    ARENA_FORMATS,
    ARENA_MODE_MAPS,
    ARENA_MODE_SETS,
    ARENA_MODES_SIZES,
    DEFAULT_MAP_POOLS,
    FPS_POOL_SIZES,
    FPS_TABLE_LENGTH,
    KNIFE_DECIDER_FORMATS,
    DraftFormat,
    GameFamily,
    GameTitle,
    StepKind,
    arena_step_plan,
)
from mapveto.draft.state import (
    DECIDER_SIDE,
    DECIDER_TEAM,
    ActionRecord,
    ArenaDraft,
    DraftStatus,
    FpsDraft,
    Lobby,
    LobbyOptions,
    PendingPick,
)
from mapveto.draft.turns import Turn, resolve_actor, resolve_priority, side_chooser

logger = logging.getLogger(__name__)

SIDE_MAX_LENGTH = 16


class DraftEventType(Enum):
    """Facts produced by draft operations."""

    TEAMS_UPDATED = "teams_updated"
    COIN_FLIP = "coin_flip"
    DRAFT_STARTED = "draft_started"
    TURN_CHANGED = "turn_changed"
    BANS_UPDATED = "bans_updated"
    PICKS_UPDATED = "picks_updated"
    PICK_NOMINATED = "pick_nominated"
    DECIDER_RESOLVED = "decider_resolved"
    MODES_UPDATED = "modes_updated"
    MAP_POOL_UPDATED = "map_pool_updated"
    DRAFT_COMPLETE = "draft_complete"
    ROUND_DRAFTED = "round_drafted"
    WINNER_PROPOSED = "winner_proposed"
    WINNER_REJECTED = "winner_rejected"
    WINNER_CONFIRMED = "winner_confirmed"
    ROUND_STARTED = "round_started"


@dataclass
class DraftEvent:
    """A fact produced by a state transition.

    Attributes:
        type: Type of event
        data: Event-specific data (JSON-compatible)
    """

    type: DraftEventType
    data: dict[str, Any]


@dataclass(frozen=True)
class DraftAction:
    """An action submitted by a team.

    Attributes:
        kind: BAN, PICK, MODE_BAN or MODE_PICK
        candidate: Map or mode name
        side: Side for an FPS pick (chosen by the side-choosing team)
    """

    kind: StepKind
    candidate: str
    side: str | None = None


def teams_event(lobby: Lobby) -> DraftEvent:
    return DraftEvent(
        type=DraftEventType.TEAMS_UPDATED,
        data={
            "teams": [
                {"name": slot.name, "connected": slot.is_connected}
                for slot in sorted(lobby.teams, key=lambda s: s.arrival)
            ]
        },
    )


def bans_event(lobby: Lobby) -> DraftEvent:
    return DraftEvent(
        type=DraftEventType.BANS_UPDATED,
        data={"bans": [record.to_dict() for record in lobby.bans]},
    )


def picks_event(lobby: Lobby) -> DraftEvent:
    return DraftEvent(
        type=DraftEventType.PICKS_UPDATED,
        data={"picks": [record.to_dict() for record in lobby.picks]},
    )


def modes_event(lobby: Lobby) -> DraftEvent:
    draft = lobby.draft
    if not isinstance(draft, ArenaDraft):
        raise ValidationError("Modes only exist for arena titles", code="not_supported")
    return DraftEvent(
        type=DraftEventType.MODES_UPDATED,
        data={
            "banned": [record.to_dict() for record in draft.banned_modes],
            "active": list(draft.active_modes),
            "picked": draft.picked_mode.to_dict() if draft.picked_mode else None,
            "modesSize": draft.modes_size,
        },
    )


def _ban_progress(lobby: Lobby) -> tuple[int, int] | None:
    """Position of the current arena ban within its run of same-seat bans."""
    draft = lobby.draft
    if not isinstance(draft, ArenaDraft):
        return None

    plan = arena_step_plan(draft.round_number, draft.modes_size)
    current = plan[lobby.step_cursor]
    if current.kind != StepKind.BAN:
        return None

    start = lobby.step_cursor
    while start > 0 and plan[start - 1] == current:
        start -= 1
    end = lobby.step_cursor
    while end + 1 < len(plan) and plan[end + 1] == current:
        end += 1
    return lobby.step_cursor - start + 1, end - start + 1


def turn_event(lobby: Lobby, turn: Turn) -> DraftEvent:
    data: dict[str, Any] = {
        "team": turn.team,
        "action": turn.step_kind.value,
        "awaitingSide": turn.awaiting_side,
        "stepCursor": lobby.step_cursor,
    }
    progress = _ban_progress(lobby)
    if progress is not None:
        data["banNumber"], data["banCount"] = progress
    return DraftEvent(type=DraftEventType.TURN_CHANGED, data=data)


def _clean_side(side: str | None) -> str:
    cleaned = (side or "").strip()[:SIDE_MAX_LENGTH]
    if not cleaned:
        raise ValidationError("A side must be chosen for the picked map", code="side_required")
    return cleaned


class DraftEngine:
    """Core draft logic.

    All methods are static. Methods that change a lobby mutate it in place
    and return it along with the events generated. Callers that need
    all-or-nothing semantics across several calls should work on
    Lobby.copy().
    """

    @staticmethod
    def create_lobby(
        lobby_id: str,
        title: GameTitle,
        fmt: DraftFormat,
        options: LobbyOptions | None = None,
        admin: bool = False,
    ) -> Lobby:
        """Create a new lobby with its default candidate pool.

        Args:
            lobby_id: Session identifier
            title: Game title
            fmt: Match format
            options: Creation options (defaults if None)
            admin: Whether an administrator created the lobby

        Returns:
            New Lobby in WAITING status

        Raises:
            ConfigurationError: If the format/options combination is invalid
        """
        if options is None:
            options = LobbyOptions()

        if title.family == GameFamily.FPS:
            draft = DraftEngine._build_fps_draft(title, fmt, options)
            return Lobby(
                id=lobby_id,
                title=title,
                format=fmt,
                options=options,
                draft=draft,
                admin=admin,
                active_pool=list(draft.map_pool),
                step_cursor=draft.start_cursor,
            )

        arena = DraftEngine._build_arena_draft(fmt, options)
        return Lobby(
            id=lobby_id,
            title=title,
            format=fmt,
            options=options,
            draft=arena,
            admin=admin,
        )

    @staticmethod
    def _build_fps_draft(title: GameTitle, fmt: DraftFormat, options: LobbyOptions) -> FpsDraft:
        allowed_sizes = FPS_POOL_SIZES[fmt]
        if options.pool_size not in allowed_sizes:
            sizes = " or ".join(str(size) for size in allowed_sizes)
            raise ConfigurationError(
                f"{fmt.value.upper()} requires a map pool of {sizes} maps",
                code="invalid_pool_size",
            )

        if options.knife_decider and fmt not in KNIFE_DECIDER_FORMATS:
            raise ConfigurationError(
                f"{fmt.value.upper()} does not support a decider",
                code="decider_not_supported",
            )

        source = options.custom_map_pool or list(DEFAULT_MAP_POOLS[title])
        maps = [name.strip() for name in source if name and name.strip()]
        maps = list(dict.fromkeys(maps))
        if len(maps) < options.pool_size:
            raise ConfigurationError(
                f"Map pool needs at least {options.pool_size} distinct maps, got {len(maps)}",
                code="invalid_pool_size",
            )

        return FpsDraft(
            map_pool=tuple(maps[: options.pool_size]),
            start_cursor=FPS_TABLE_LENGTH - options.pool_size,
            knife_decider=options.knife_decider,
        )

    @staticmethod
    def _build_arena_draft(fmt: DraftFormat, options: LobbyOptions) -> ArenaDraft:
        if fmt not in ARENA_FORMATS:
            raise ConfigurationError(
                f"Format {fmt.value} is not available for this title", code="invalid_format"
            )
        if options.modes_size not in ARENA_MODES_SIZES:
            raise ConfigurationError(
                f"Modes size must be 2 or 4, got {options.modes_size}", code="invalid_modes_size"
            )
        if options.knife_decider:
            raise ConfigurationError(
                "This title does not support a decider", code="decider_not_supported"
            )
        if options.custom_map_pool:
            raise ConfigurationError(
                "Custom map pools are not available for this title", code="invalid_map_pool"
            )

        return ArenaDraft(
            modes_size=options.modes_size,
            mode_pool=ARENA_MODE_SETS[options.modes_size],
            mode_maps=dict(ARENA_MODE_MAPS),
        )

    @staticmethod
    def start_draft(
        lobby: Lobby,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> tuple[Lobby, list[DraftEvent]]:
        """Resolve the priority team and open the first turn. Mutates lobby in place.

        Args:
            lobby: Lobby in WAITING status with two teams
            rng: Random source for the coin flip
            clock: Wall-clock source for the coin flip

        Returns:
            Tuple of (lobby, events)
        """
        if lobby.status != DraftStatus.WAITING:
            raise ValidationError("The draft has already started", code="already_started")

        priority, flip = resolve_priority(lobby, rng, clock)

        events: list[DraftEvent] = []
        if flip is not None:
            events.append(
                DraftEvent(
                    type=DraftEventType.COIN_FLIP,
                    data={"result": flip, "team": priority},
                )
            )

        lobby.priority_team = priority
        lobby.coin_flip_result = flip
        lobby.status = DraftStatus.DRAFTING
        events.append(
            DraftEvent(
                type=DraftEventType.DRAFT_STARTED,
                data={"priorityTeam": priority, "coinFlip": flip is not None},
            )
        )
        logger.info(f"Draft started in lobby {lobby.id}, priority team {priority}")

        if isinstance(lobby.draft, ArenaDraft):
            events.extend(DraftEngine.start_arena_round(lobby))
        else:
            turn = resolve_actor(lobby)
            if turn is not None:
                events.append(turn_event(lobby, turn))

        return lobby, events

    @staticmethod
    def start_arena_round(lobby: Lobby) -> list[DraftEvent]:
        """Reset the per-round arena state for ``draft.round_number``.

        The priority team must already be set for the round.
        """
        draft = lobby.draft
        if not isinstance(draft, ArenaDraft):
            raise ValidationError("Rounds only exist for arena titles", code="not_supported")

        draft.active_modes = list(draft.mode_pool)
        draft.banned_modes = []
        draft.picked_mode = None
        draft.pending_winner_proposal = None
        lobby.active_pool = []
        lobby.bans = []
        lobby.picks = []
        lobby.step_cursor = 0
        lobby.status = DraftStatus.DRAFTING

        events = [
            modes_event(lobby),
            DraftEvent(type=DraftEventType.MAP_POOL_UPDATED, data={"maps": []}),
            bans_event(lobby),
            picks_event(lobby),
        ]
        turn = resolve_actor(lobby)
        if turn is not None:
            events.append(turn_event(lobby, turn))
        return events

    @staticmethod
    def validate_action(lobby: Lobby, team: str, action: DraftAction) -> Turn:
        """Check that an action is legal right now.

        Args:
            lobby: Current lobby
            team: Team label supplied by the caller
            action: Submitted action

        Returns:
            The Turn the action is played against

        Raises:
            ValidationError: If the action is not legal
        """
        if lobby.status == DraftStatus.WAITING:
            raise ValidationError("The draft has not started yet", code="not_started")
        if lobby.status != DraftStatus.DRAFTING:
            raise ValidationError("No draft actions are allowed now", code="draft_complete")

        if lobby.get_team(team) is None:
            raise ValidationError(f"Unknown team: {team}", code="unknown_team")

        turn = resolve_actor(lobby)
        if turn is None:
            raise ValidationError("No draft actions are allowed now", code="draft_complete")

        if action.kind != turn.step_kind:
            raise ValidationError(
                f"Expected a {turn.step_kind.value} action, got {action.kind.value}",
                code="wrong_step",
            )

        if isinstance(lobby.draft, ArenaDraft) and action.kind.is_mode_step:
            domain = lobby.draft.active_modes
        else:
            domain = lobby.active_pool
        if action.candidate not in domain:
            raise ValidationError(
                f"{action.candidate} is not available", code="invalid_candidate"
            )

        if lobby.options.strict_turns and team != turn.team:
            raise ValidationError(f"It is {turn.team}'s turn", code="not_your_turn")

        return turn

    @staticmethod
    def apply_action(
        lobby: Lobby,
        team: str,
        action: DraftAction,
    ) -> tuple[Lobby, list[DraftEvent]]:
        """Validate and apply a ban/pick/mode action. Mutates lobby in place.

        Args:
            lobby: Lobby (will be mutated)
            team: Acting team label
            action: The action

        Returns:
            Tuple of (lobby, events)

        Raises:
            ValidationError: If the action is not legal; the lobby is unchanged
        """
        DraftEngine.validate_action(lobby, team, action)

        draft = lobby.draft
        if isinstance(draft, FpsDraft):
            events = DraftEngine._apply_fps(lobby, draft, team, action)
        elif isinstance(draft, ArenaDraft):
            events = DraftEngine._apply_arena(lobby, draft, team, action)
        else:
            raise TypeError(f"Unknown draft payload: {type(draft).__name__}")

        return lobby, events

    @staticmethod
    def _apply_fps(
        lobby: Lobby, draft: FpsDraft, team: str, action: DraftAction
    ) -> list[DraftEvent]:
        events: list[DraftEvent] = []

        if action.kind == StepKind.BAN:
            lobby.bans.append(ActionRecord(candidate=action.candidate, team=team))
            lobby.active_pool.remove(action.candidate)
            lobby.step_cursor += 1
            logger.info(f"{team} banned {action.candidate} in lobby {lobby.id}")
            events.append(bans_event(lobby))

        elif not lobby.format.is_multi_game:
            side = _clean_side(action.side)
            lobby.picks.append(
                ActionRecord(candidate=action.candidate, team=team, side=side, side_team=team)
            )
            lobby.active_pool.remove(action.candidate)
            lobby.step_cursor += 1
            logger.info(f"{team} picked {action.candidate} ({side}) in lobby {lobby.id}")
            events.append(picks_event(lobby))

        elif draft.pending_pick is None:
            if action.side:
                raise ValidationError(
                    "The side is chosen by the opposing team", code="side_not_allowed"
                )
            draft.pending_pick = PendingPick(candidate=action.candidate, team=team)
            chooser = side_chooser(lobby, team)
            logger.info(f"{team} nominated {action.candidate} in lobby {lobby.id}")
            events.append(
                DraftEvent(
                    type=DraftEventType.PICK_NOMINATED,
                    data={"candidate": action.candidate, "team": team, "sideTeam": chooser},
                )
            )
            turn = resolve_actor(lobby)
            if turn is not None:
                events.append(turn_event(lobby, turn))
            return events

        else:
            pending = draft.pending_pick
            if action.candidate != pending.candidate:
                raise ValidationError(
                    f"{pending.candidate} was nominated, not {action.candidate}",
                    code="invalid_candidate",
                )
            side = _clean_side(action.side)
            lobby.picks.append(
                ActionRecord(
                    candidate=pending.candidate,
                    team=pending.team,
                    side=side,
                    side_team=team,
                )
            )
            draft.pending_pick = None
            lobby.active_pool.remove(pending.candidate)
            lobby.step_cursor += 1
            logger.info(
                f"{pending.team} picked {pending.candidate}, {team} chose {side} "
                f"in lobby {lobby.id}"
            )
            events.append(picks_event(lobby))

        events.extend(DraftEngine._advance_fps(lobby, draft))
        return events

    @staticmethod
    def _advance_fps(lobby: Lobby, draft: FpsDraft) -> list[DraftEvent]:
        """Resolve a knife-round decider, detect the end, or open the next turn."""
        events: list[DraftEvent] = []
        rules = lobby.rules

        if (
            draft.knife_decider
            and lobby.step_cursor < len(rules)
            and rules[lobby.step_cursor] == StepKind.DECIDER
        ):
            remaining = lobby.active_pool[-1]
            lobby.picks.append(
                ActionRecord(
                    candidate=remaining,
                    team=DECIDER_TEAM,
                    side=DECIDER_SIDE,
                    side_team=DECIDER_TEAM,
                )
            )
            lobby.active_pool.remove(remaining)
            lobby.step_cursor += 1
            logger.info(f"Decider {remaining} resolved in lobby {lobby.id}")
            events.append(
                DraftEvent(type=DraftEventType.DECIDER_RESOLVED, data={"candidate": remaining})
            )
            events.append(picks_event(lobby))

        if lobby.step_cursor >= len(rules):
            lobby.status = DraftStatus.COMPLETE
            logger.info(f"Draft complete in lobby {lobby.id}")
            events.append(
                DraftEvent(
                    type=DraftEventType.DRAFT_COMPLETE,
                    data={"picks": [record.to_dict() for record in lobby.picks]},
                )
            )
            return events

        turn = resolve_actor(lobby)
        if turn is not None:
            events.append(turn_event(lobby, turn))
        return events

    @staticmethod
    def _apply_arena(
        lobby: Lobby, draft: ArenaDraft, team: str, action: DraftAction
    ) -> list[DraftEvent]:
        events: list[DraftEvent] = []
        record = ActionRecord(
            candidate=action.candidate, team=team, round_number=draft.round_number
        )

        if action.kind == StepKind.MODE_BAN:
            draft.banned_modes.append(record)
            draft.active_modes.remove(action.candidate)
            logger.info(f"{team} banned mode {action.candidate} in lobby {lobby.id}")
            events.append(modes_event(lobby))

        elif action.kind == StepKind.MODE_PICK:
            draft.picked_mode = record
            draft.active_modes.remove(action.candidate)
            lobby.active_pool = list(draft.mode_maps[action.candidate])
            logger.info(f"{team} picked mode {action.candidate} in lobby {lobby.id}")
            events.append(modes_event(lobby))
            events.append(
                DraftEvent(
                    type=DraftEventType.MAP_POOL_UPDATED,
                    data={"maps": list(lobby.active_pool)},
                )
            )

        elif action.kind == StepKind.BAN:
            lobby.bans.append(record)
            lobby.active_pool.remove(action.candidate)
            logger.info(f"{team} banned {action.candidate} in lobby {lobby.id}")
            events.append(bans_event(lobby))

        else:
            lobby.picks.append(record)
            lobby.active_pool.remove(action.candidate)
            logger.info(f"{team} picked {action.candidate} in lobby {lobby.id}")
            events.append(picks_event(lobby))

        lobby.step_cursor += 1

        if lobby.step_cursor >= len(lobby.rules):
            lobby.status = DraftStatus.AWAITING_WINNER
            logger.info(f"Round {draft.round_number} drafted in lobby {lobby.id}")
            events.append(
                DraftEvent(
                    type=DraftEventType.ROUND_DRAFTED,
                    data={
                        "roundNumber": draft.round_number,
                        "picks": [r.to_dict() for r in lobby.picks],
                    },
                )
            )
            return events

        turn = resolve_actor(lobby)
        if turn is not None:
            events.append(turn_event(lobby, turn))
        return events
