"""Turn resolution: who may act next, and with what action.

The coin flip here is a simple fairness mechanism, not an
anti-manipulation guarantee. It XORs a uniform coin, the parity of the
wall clock in milliseconds and a second uniform draw, which yields one of
the two teams chosen independently per session.
"""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass

from mapveto.draft.errors import ValidationError
from mapveto.draft.rules import DraftFormat, Seat, StepKind, arena_step_plan
from mapveto.draft.state import ArenaDraft, DraftStatus, FpsDraft, Lobby

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Turn:
    """The team entitled to act and the action kind it may take.

    Attributes:
        team: Acting team name
        step_kind: Allowed action (a decider step without knife round is a PICK)
        awaiting_side: FPS pick nominated; the acting team now chooses the side
    """

    team: str
    step_kind: StepKind
    awaiting_side: bool = False


def flip_coin(
    rng: random.Random | None = None,
    clock: Callable[[], float] = time.time,
) -> int:
    """Flip a coin, returning 0 (first team) or 1 (second team)."""
    source = rng or random
    first = source.randrange(2)
    parity = int(clock() * 1000) % 2
    second = 1 if source.random() > 0.5 else 0
    return first ^ parity ^ second


def resolve_priority(
    lobby: Lobby,
    rng: random.Random | None = None,
    clock: Callable[[], float] = time.time,
) -> tuple[str, int | None]:
    """Resolve the team that acts first.

    With coin flip enabled the outcome indexes the teams in arrival order;
    otherwise the team that registered first wins priority.

    Args:
        lobby: Lobby with exactly two teams
        rng: Random source (module random if None)
        clock: Wall-clock source in seconds

    Returns:
        Tuple of (priority team name, coin flip result or None)
    """
    names = lobby.team_names
    if len(names) != 2:
        raise ValidationError("Two teams are required to start the draft", code="teams_incomplete")

    if lobby.options.coin_flip:
        result = flip_coin(rng, clock)
        logger.info(f"Coin flip in lobby {lobby.id}: {result} -> {names[result]}")
        return names[result], result

    return names[0], None


def resolve_actor(lobby: Lobby) -> Turn | None:
    """Compute who may act next.

    Args:
        lobby: Lobby to inspect

    Returns:
        The current Turn, or None when the draft (or arena round) is terminal

    Raises:
        ValidationError: If the draft has not started
    """
    if lobby.status == DraftStatus.WAITING or lobby.priority_team is None:
        raise ValidationError("The draft has not started yet", code="not_started")

    rules = lobby.rules
    if lobby.status != DraftStatus.DRAFTING or lobby.step_cursor >= len(rules):
        return None

    priority = lobby.priority_team
    opponent = lobby.opponent_of(priority) or priority
    draft = lobby.draft

    if isinstance(draft, FpsDraft):
        kind = rules[lobby.step_cursor]
        if kind == StepKind.DECIDER:
            kind = StepKind.PICK

        if draft.pending_pick is not None and lobby.format.is_multi_game:
            side_team = lobby.opponent_of(draft.pending_pick.team) or draft.pending_pick.team
            return Turn(team=side_team, step_kind=StepKind.PICK, awaiting_side=True)

        offset = lobby.step_cursor - draft.start_cursor
        team = priority if offset % 2 == 0 else opponent
        return Turn(team=team, step_kind=kind)

    if isinstance(draft, ArenaDraft):
        step = arena_step_plan(draft.round_number, draft.modes_size)[lobby.step_cursor]
        team = priority if step.seat == Seat.PRIORITY else opponent
        return Turn(team=team, step_kind=step.kind)

    raise TypeError(f"Unknown draft payload: {type(draft).__name__}")


def side_chooser(lobby: Lobby, picking_team: str) -> str:
    """Get the team that chooses the side for a map picked by ``picking_team``."""
    if lobby.format == DraftFormat.BO1:
        return picking_team
    return lobby.opponent_of(picking_team) or picking_team
