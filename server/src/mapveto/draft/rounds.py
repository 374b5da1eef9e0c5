"""Round controller for the arena family.

Once a round's map is picked, either team proposes the winner and the
other team confirms or rejects. A confirmation archives the round and
starts the next one with the winner holding priority ("winner bans
first"). There is no match-over state: rounds continue until the lobby
is deleted.
"""

import logging
from collections import Counter

from mapveto.draft.engine import DraftEngine, DraftEvent, DraftEventType
from mapveto.draft.errors import ValidationError
from mapveto.draft.state import (
    ArenaDraft,
    DraftStatus,
    Lobby,
    RoundRecord,
    WinnerProposal,
)

logger = logging.getLogger(__name__)


def _arena_draft(lobby: Lobby) -> ArenaDraft:
    if not isinstance(lobby.draft, ArenaDraft):
        raise ValidationError("Winner reporting is only available for arena titles", code="not_supported")
    return lobby.draft


def _require_team(lobby: Lobby, name: str) -> None:
    if lobby.get_team(name) is None:
        raise ValidationError(f"Unknown team: {name}", code="unknown_team")


def propose_winner(
    lobby: Lobby,
    proposing_team: str,
    winner: str,
) -> tuple[Lobby, list[DraftEvent]]:
    """Propose the winner of the current round. Mutates lobby in place.

    Args:
        lobby: Arena lobby whose round has been drafted
        proposing_team: Team making the claim
        winner: Team claimed to have won

    Returns:
        Tuple of (lobby, events)
    """
    draft = _arena_draft(lobby)
    _require_team(lobby, proposing_team)
    _require_team(lobby, winner)

    if lobby.status == DraftStatus.AWAITING_CONFIRMATION:
        raise ValidationError("A winner proposal is already pending", code="proposal_pending")
    if lobby.status != DraftStatus.AWAITING_WINNER:
        raise ValidationError("The round has not been drafted yet", code="round_in_progress")

    draft.pending_winner_proposal = WinnerProposal(
        proposed_winner=winner, proposing_team=proposing_team
    )
    lobby.status = DraftStatus.AWAITING_CONFIRMATION
    logger.info(f"{proposing_team} proposed {winner} as round winner in lobby {lobby.id}")

    return lobby, [
        DraftEvent(
            type=DraftEventType.WINNER_PROPOSED,
            data={
                "winner": winner,
                "proposingTeam": proposing_team,
                "recipientTeam": lobby.opponent_of(proposing_team),
                "roundNumber": draft.round_number,
            },
        )
    ]


def confirm_winner(
    lobby: Lobby,
    confirming_team: str,
    winner: str,
    accepted: bool,
) -> tuple[Lobby, list[DraftEvent]]:
    """Confirm or reject the pending winner proposal. Mutates lobby in place.

    On acceptance the round is archived, the winner becomes the priority
    team and the next round starts with the subsequent-round rules. On
    rejection the proposal is cleared so either team may propose again.

    Args:
        lobby: Arena lobby with a pending proposal
        confirming_team: Team answering the proposal
        winner: Winner named in the proposal being answered
        accepted: Whether the proposal is accepted

    Returns:
        Tuple of (lobby, events)
    """
    draft = _arena_draft(lobby)
    _require_team(lobby, confirming_team)

    proposal = draft.pending_winner_proposal
    if lobby.status != DraftStatus.AWAITING_CONFIRMATION or proposal is None:
        raise ValidationError("There is no winner proposal to answer", code="no_proposal")
    if confirming_team == proposal.proposing_team:
        raise ValidationError(
            "The proposing team cannot answer its own proposal", code="own_proposal"
        )
    if winner != proposal.proposed_winner:
        raise ValidationError(
            f"The pending proposal names {proposal.proposed_winner}, not {winner}",
            code="winner_mismatch",
        )

    if not accepted:
        draft.pending_winner_proposal = None
        lobby.status = DraftStatus.AWAITING_WINNER
        logger.info(f"{confirming_team} rejected {winner} as round winner in lobby {lobby.id}")
        return lobby, [
            DraftEvent(
                type=DraftEventType.WINNER_REJECTED,
                data={"winner": winner, "rejectingTeam": confirming_team},
            )
        ]

    finished_round = draft.round_number
    draft.round_history.append(
        RoundRecord(
            round_number=finished_round,
            winner=winner,
            picks=tuple(lobby.picks),
            banned_modes=tuple(draft.banned_modes),
            picked_mode=draft.picked_mode,
        )
    )
    draft.last_round_winner = winner
    draft.round_number += 1
    lobby.priority_team = winner
    logger.info(
        f"Round {finished_round} won by {winner} in lobby {lobby.id}, "
        f"starting round {draft.round_number}"
    )

    events = [
        DraftEvent(
            type=DraftEventType.WINNER_CONFIRMED,
            data={
                "winner": winner,
                "roundNumber": finished_round,
                "history": [record.to_dict() for record in draft.round_history],
            },
        ),
        DraftEvent(
            type=DraftEventType.ROUND_STARTED,
            data={"roundNumber": draft.round_number, "priorityTeam": winner},
        ),
    ]
    events.extend(DraftEngine.start_arena_round(lobby))
    return lobby, events


def round_wins(lobby: Lobby) -> dict[str, int]:
    """Tally confirmed round wins per team. Informational only."""
    if not isinstance(lobby.draft, ArenaDraft):
        return {}
    wins = Counter(record.winner for record in lobby.draft.round_history)
    return {name: wins.get(name, 0) for name in lobby.team_names}
