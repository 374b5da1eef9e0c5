"""Tests for turn resolution and the coin flip."""

import pytest

from mapveto.draft.engine import DraftEngine
from mapveto.draft.errors import ValidationError
from mapveto.draft.rules import DraftFormat, GameTitle, StepKind
from mapveto.draft.state import DraftStatus, LobbyOptions, PendingPick, TeamSlot
from mapveto.draft.turns import flip_coin, resolve_actor, resolve_priority, side_chooser


class FixedRandom:
    """Random source returning fixed values."""

    def __init__(self, coin: int, draw: float) -> None:
        self.coin = coin
        self.draw = draw

    def randrange(self, n: int) -> int:
        return self.coin

    def random(self) -> float:
        return self.draw


def make_lobby(title=GameTitle.CS2, fmt=DraftFormat.BO1, **options):
    lobby = DraftEngine.create_lobby("TURNS", title, fmt, LobbyOptions(**options))
    lobby.teams = [TeamSlot("Red", 0, "c1"), TeamSlot("Blue", 1, "c2")]
    lobby.next_arrival = 2
    return lobby


class TestFlipCoin:
    """Tests for flip_coin."""

    def test_xor_of_sources(self):
        """The result is the XOR of both draws and the clock parity."""
        assert flip_coin(FixedRandom(1, 0.2), clock=lambda: 0.5) == 1
        assert flip_coin(FixedRandom(1, 0.9), clock=lambda: 0.5) == 0
        assert flip_coin(FixedRandom(0, 0.2), clock=lambda: 0.125) == 1
        assert flip_coin(FixedRandom(1, 0.9), clock=lambda: 0.125) == 1

    def test_result_is_zero_or_one(self):
        """Real random sources yield 0 or 1."""
        for _ in range(20):
            assert flip_coin() in (0, 1)


class TestResolvePriority:
    """Tests for resolve_priority."""

    def test_first_arrival_without_coin_flip(self):
        """Without a coin flip the first team to arrive acts first."""
        lobby = make_lobby(coin_flip=False)
        # List order must not matter, only the arrival stamp
        lobby.teams.reverse()

        priority, flip = resolve_priority(lobby)

        assert priority == "Red"
        assert flip is None

    def test_coin_flip_indexes_arrival_order(self):
        """The coin flip result selects a team by arrival order."""
        lobby = make_lobby(coin_flip=True)

        priority, flip = resolve_priority(lobby, FixedRandom(1, 0.2), clock=lambda: 0.5)

        assert flip == 1
        assert priority == "Blue"

    def test_requires_two_teams(self):
        """Priority cannot be resolved with a single team."""
        lobby = make_lobby()
        lobby.teams = lobby.teams[:1]

        with pytest.raises(ValidationError) as exc_info:
            resolve_priority(lobby)
        assert exc_info.value.code == "teams_incomplete"


class TestResolveActor:
    """Tests for resolve_actor."""

    def test_not_started(self):
        """Asking for the actor before the start is an error."""
        lobby = make_lobby()
        with pytest.raises(ValidationError) as exc_info:
            resolve_actor(lobby)
        assert exc_info.value.code == "not_started"

    def test_fps_alternates_from_priority(self):
        """FPS turns alternate starting with the priority team."""
        lobby = make_lobby(coin_flip=False)
        DraftEngine.start_draft(lobby)

        expected = ["Red", "Blue", "Red", "Blue", "Red", "Blue", "Red"]
        for cursor, team in enumerate(expected):
            lobby.step_cursor = cursor
            turn = resolve_actor(lobby)
            assert turn is not None
            assert turn.team == team

    def test_fps_small_pool_starts_with_priority(self):
        """A 4-map pool starts at cursor 3 and priority still acts first."""
        lobby = make_lobby(coin_flip=False, pool_size=4)
        DraftEngine.start_draft(lobby)

        assert lobby.step_cursor == 3
        turn = resolve_actor(lobby)
        assert turn.team == "Red"
        assert turn.step_kind == StepKind.BAN

    def test_decider_without_knife_round_is_a_pick(self):
        """A decider step is an ordinary pick when no knife round is configured."""
        lobby = make_lobby(fmt=DraftFormat.BO3, coin_flip=False)
        DraftEngine.start_draft(lobby)
        lobby.step_cursor = 6

        turn = resolve_actor(lobby)

        assert turn.step_kind == StepKind.PICK
        assert turn.team == "Red"

    def test_pending_pick_awaits_opponent_side(self):
        """A nominated map on a multi-game format is answered by the opponent."""
        lobby = make_lobby(fmt=DraftFormat.BO3, coin_flip=False)
        DraftEngine.start_draft(lobby)
        lobby.step_cursor = 2
        lobby.draft.pending_pick = PendingPick(candidate="Mirage", team="Red")

        turn = resolve_actor(lobby)

        assert turn.team == "Blue"
        assert turn.step_kind == StepKind.PICK
        assert turn.awaiting_side is True

    def test_terminal_returns_none(self):
        """No one acts once the table is exhausted."""
        lobby = make_lobby(coin_flip=False)
        DraftEngine.start_draft(lobby)
        lobby.step_cursor = 7

        assert resolve_actor(lobby) is None

    def test_not_drafting_returns_none(self):
        """No one acts while an arena round waits for a winner."""
        lobby = make_lobby(title=GameTitle.SPLATOON, fmt=DraftFormat.BO3, coin_flip=False)
        DraftEngine.start_draft(lobby)
        lobby.status = DraftStatus.AWAITING_WINNER

        assert resolve_actor(lobby) is None

    def test_arena_seats(self):
        """Arena turns follow the seat of each step."""
        lobby = make_lobby(title=GameTitle.SPLATOON, fmt=DraftFormat.BO3, coin_flip=False)
        DraftEngine.start_draft(lobby)

        teams = []
        for cursor in range(len(lobby.rules)):
            lobby.step_cursor = cursor
            teams.append(resolve_actor(lobby).team)

        assert teams == ["Red", "Blue", "Red", "Red", "Red", "Blue", "Blue", "Blue", "Red"]


class TestSideChooser:
    """Tests for side_chooser."""

    def test_bo1_picker_chooses(self):
        lobby = make_lobby(fmt=DraftFormat.BO1)
        assert side_chooser(lobby, "Red") == "Red"

    def test_multi_game_opponent_chooses(self):
        lobby = make_lobby(fmt=DraftFormat.BO2)
        assert side_chooser(lobby, "Red") == "Blue"
        assert side_chooser(lobby, "Blue") == "Red"
