"""Tests for the in-memory lobby store."""

import asyncio

import pytest

from mapveto.draft.engine import DraftAction, DraftEventType
from mapveto.draft.errors import ConfigurationError, NotFoundError, ValidationError
from mapveto.draft.rules import DraftFormat, GameTitle, StepKind
from mapveto.draft.state import DraftStatus, ParticipantRole
from mapveto.lobby.manager import (
    LOBBY_CODE_ALPHABET,
    LOBBY_CODE_LENGTH,
    LobbyManager,
    sanitize_team_name,
)


@pytest.fixture
def manager() -> LobbyManager:
    """Create an isolated store with coin flips disabled."""
    return LobbyManager(coin_flip_default=False)


async def lobby_with_teams(
    manager: LobbyManager,
    fmt: DraftFormat = DraftFormat.BO1,
    title: GameTitle = GameTitle.CS2,
    admin: bool = False,
):
    lobby = await manager.create_lobby(title, fmt, lobby_id="ROOM", admin=admin)
    await manager.join_lobby(lobby.id, "c-red")
    await manager.join_lobby(lobby.id, "c-blue")
    await manager.set_team_name(lobby.id, "c-red", "Red")
    return await manager.set_team_name(lobby.id, "c-blue", "Blue")


class TestSanitizeTeamName:
    """Tests for team name sanitisation."""

    def test_trims_and_strips_brackets(self):
        assert sanitize_team_name("  <b>Red</b>  ") == "bRed/b"

    def test_caps_length(self):
        assert sanitize_team_name("x" * 50) == "x" * 32
        assert sanitize_team_name("abcdef", max_length=3) == "abc"


class TestCreateLobby:
    """Tests for creating and looking up lobbies."""

    @pytest.mark.asyncio
    async def test_generated_code(self, manager: LobbyManager) -> None:
        lobby = await manager.create_lobby(GameTitle.CS2, DraftFormat.BO3)

        assert len(lobby.id) == LOBBY_CODE_LENGTH
        assert all(char in LOBBY_CODE_ALPHABET for char in lobby.id)
        assert manager.get_lobby(lobby.id) is lobby

    @pytest.mark.asyncio
    async def test_explicit_id_must_be_free(self, manager: LobbyManager) -> None:
        await manager.create_lobby(GameTitle.CS2, DraftFormat.BO1, lobby_id="ROOM")

        with pytest.raises(ValidationError) as exc_info:
            await manager.create_lobby(GameTitle.CS2, DraftFormat.BO1, lobby_id="ROOM")
        assert exc_info.value.code == "lobby_exists"

    @pytest.mark.asyncio
    async def test_configuration_error(self, manager: LobbyManager) -> None:
        options = manager.build_options(knife_decider=True)
        with pytest.raises(ConfigurationError):
            await manager.create_lobby(GameTitle.CS2, DraftFormat.BO1, options)
        assert manager.list_lobbies() == []

    @pytest.mark.asyncio
    async def test_build_options_defaults(self) -> None:
        manager = LobbyManager(strict_turn_order=False, coin_flip_default=True)

        options = manager.build_options()
        assert options.coin_flip is True
        assert options.strict_turns is False

        options = manager.build_options(coin_flip=False, strict_turns=True)
        assert options.coin_flip is False
        assert options.strict_turns is True

    @pytest.mark.asyncio
    async def test_require_lobby(self, manager: LobbyManager) -> None:
        with pytest.raises(NotFoundError):
            manager.require_lobby("NOPE")

    @pytest.mark.asyncio
    async def test_delete_lobby(self, manager: LobbyManager) -> None:
        lobby = await manager.create_lobby(GameTitle.CS2, DraftFormat.BO1)

        assert await manager.delete_lobby(lobby.id) is True
        assert manager.get_lobby(lobby.id) is None
        assert await manager.delete_lobby(lobby.id) is False


class TestTeams:
    """Tests for joining and claiming team slots."""

    @pytest.mark.asyncio
    async def test_join_unknown_lobby(self, manager: LobbyManager) -> None:
        with pytest.raises(NotFoundError):
            await manager.join_lobby("NOPE", "c1")

    @pytest.mark.asyncio
    async def test_observer_cannot_claim_team(self, manager: LobbyManager) -> None:
        lobby = await manager.create_lobby(GameTitle.CS2, DraftFormat.BO1)
        await manager.join_lobby(lobby.id, "c1", ParticipantRole.OBSERVER)

        with pytest.raises(ValidationError) as exc_info:
            await manager.set_team_name(lobby.id, "c1", "Red")
        assert exc_info.value.code == "not_a_member"

    @pytest.mark.asyncio
    async def test_two_teams_start_draft(self, manager: LobbyManager) -> None:
        """A non-admin lobby starts as soon as the second team arrives."""
        lobby, events = await lobby_with_teams(manager)

        assert lobby.status == DraftStatus.DRAFTING
        assert lobby.priority_team == "Red"
        types = [event.type for event in events]
        assert types[0] == DraftEventType.TEAMS_UPDATED
        assert DraftEventType.DRAFT_STARTED in types
        assert types[-1] == DraftEventType.TURN_CHANGED

    @pytest.mark.asyncio
    async def test_admin_lobby_waits_for_start(self, manager: LobbyManager) -> None:
        """An administrator lobby needs an explicit start."""
        lobby, _ = await lobby_with_teams(manager, admin=True)
        assert lobby.status == DraftStatus.WAITING

        lobby, events = await manager.start_draft(lobby.id)

        assert lobby.status == DraftStatus.DRAFTING
        assert events[-1].type == DraftEventType.TURN_CHANGED

    @pytest.mark.asyncio
    async def test_duplicate_team_name(self, manager: LobbyManager) -> None:
        lobby = await manager.create_lobby(GameTitle.CS2, DraftFormat.BO1)
        await manager.join_lobby(lobby.id, "c1")
        await manager.join_lobby(lobby.id, "c2")
        await manager.set_team_name(lobby.id, "c1", "Red")

        with pytest.raises(ValidationError) as exc_info:
            await manager.set_team_name(lobby.id, "c2", "Red")
        assert exc_info.value.code == "team_name_taken"

    @pytest.mark.asyncio
    async def test_third_team_rejected(self, manager: LobbyManager) -> None:
        lobby, _ = await lobby_with_teams(manager, admin=True)
        await manager.join_lobby(lobby.id, "c-green")

        with pytest.raises(ValidationError) as exc_info:
            await manager.set_team_name(lobby.id, "c-green", "Green")
        assert exc_info.value.code == "lobby_full"

    @pytest.mark.asyncio
    async def test_rename_before_start(self, manager: LobbyManager) -> None:
        lobby = await manager.create_lobby(GameTitle.CS2, DraftFormat.BO1)
        await manager.join_lobby(lobby.id, "c1")
        await manager.set_team_name(lobby.id, "c1", "Red")

        lobby, _ = await manager.set_team_name(lobby.id, "c1", "Crimson")

        assert lobby.team_names == ["Crimson"]

    @pytest.mark.asyncio
    async def test_empty_name_rejected(self, manager: LobbyManager) -> None:
        lobby = await manager.create_lobby(GameTitle.CS2, DraftFormat.BO1)
        await manager.join_lobby(lobby.id, "c1")

        with pytest.raises(ValidationError) as exc_info:
            await manager.set_team_name(lobby.id, "c1", "  <> ")
        assert exc_info.value.code == "invalid_team_name"

    @pytest.mark.asyncio
    async def test_version_increments(self, manager: LobbyManager) -> None:
        lobby = await manager.create_lobby(GameTitle.CS2, DraftFormat.BO1)
        assert lobby.version == 0

        lobby = await manager.join_lobby(lobby.id, "c1")
        assert lobby.version == 1


class TestActions:
    """Tests for draft actions routed through the store."""

    @pytest.mark.asyncio
    async def test_apply_action(self, manager: LobbyManager) -> None:
        lobby, _ = await lobby_with_teams(manager)

        lobby, events = await manager.apply_action(
            lobby.id, "c-red", "Red", DraftAction(StepKind.BAN, "Mirage")
        )

        assert [ban.candidate for ban in lobby.bans] == ["Mirage"]
        assert manager.get_lobby(lobby.id) is lobby

    @pytest.mark.asyncio
    async def test_rejected_action_leaves_stored_lobby_unchanged(
        self, manager: LobbyManager
    ) -> None:
        """A failed action commits nothing."""
        lobby, _ = await lobby_with_teams(manager)
        before = manager.get_lobby(lobby.id)

        with pytest.raises(ValidationError):
            await manager.apply_action(
                lobby.id, "c-red", "Red", DraftAction(StepKind.BAN, "Nowhere")
            )

        assert manager.get_lobby(lobby.id) is before
        assert before.bans == []

    @pytest.mark.asyncio
    async def test_strict_team_mismatch(self, manager: LobbyManager) -> None:
        """With strict turns a connection can only act as its own team."""
        lobby, _ = await lobby_with_teams(manager)

        with pytest.raises(ValidationError) as exc_info:
            await manager.apply_action(
                lobby.id, "c-blue", "Red", DraftAction(StepKind.BAN, "Mirage")
            )
        assert exc_info.value.code == "team_mismatch"

    @pytest.mark.asyncio
    async def test_non_member_cannot_act(self, manager: LobbyManager) -> None:
        lobby, _ = await lobby_with_teams(manager)
        await manager.join_lobby(lobby.id, "c-obs", ParticipantRole.OBSERVER)

        with pytest.raises(ValidationError) as exc_info:
            await manager.apply_action(
                lobby.id, "c-obs", "Red", DraftAction(StepKind.BAN, "Mirage")
            )
        assert exc_info.value.code == "not_a_member"

    @pytest.mark.asyncio
    async def test_permissive_mode(self) -> None:
        """Without strict turns any member may act for any known team."""
        manager = LobbyManager(coin_flip_default=False, strict_turn_order=False)
        lobby, _ = await lobby_with_teams(manager)

        lobby, _ = await manager.apply_action(
            lobby.id, "c-blue", "Red", DraftAction(StepKind.BAN, "Mirage")
        )

        assert lobby.bans[0].team == "Red"

    @pytest.mark.asyncio
    async def test_concurrent_actions_serialized(self) -> None:
        """Two simultaneous bans for the same step cannot both succeed."""
        manager = LobbyManager(coin_flip_default=False, strict_turn_order=False)
        lobby, _ = await lobby_with_teams(manager)

        results = await asyncio.gather(
            manager.apply_action(lobby.id, "c-red", "Red", DraftAction(StepKind.BAN, "Mirage")),
            manager.apply_action(lobby.id, "c-blue", "Blue", DraftAction(StepKind.BAN, "Mirage")),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, ValidationError)]
        assert len(failures) == 1
        stored = manager.get_lobby(lobby.id)
        assert stored.step_cursor == 1
        assert len(stored.bans) == 1

    @pytest.mark.asyncio
    async def test_arena_round_flow(self, manager: LobbyManager) -> None:
        """Winner proposal and confirmation go through the store."""
        lobby, _ = await lobby_with_teams(manager, fmt=DraftFormat.BO3, title=GameTitle.SPLATOON)
        steps = [
            ("c-red", "Red", StepKind.MODE_BAN, "clam"),
            ("c-blue", "Blue", StepKind.MODE_BAN, "rainmaker"),
            ("c-red", "Red", StepKind.MODE_PICK, "tower"),
        ]
        for connection_id, team, kind, candidate in steps:
            stored, _ = await manager.apply_action(
                lobby.id, connection_id, team, DraftAction(kind, candidate)
            )

        maps = list(stored.active_pool)
        for connection_id, team, kind, candidate in [
            ("c-red", "Red", StepKind.BAN, maps[0]),
            ("c-red", "Red", StepKind.BAN, maps[1]),
            ("c-blue", "Blue", StepKind.BAN, maps[2]),
            ("c-blue", "Blue", StepKind.BAN, maps[3]),
            ("c-blue", "Blue", StepKind.BAN, maps[4]),
            ("c-red", "Red", StepKind.PICK, maps[5]),
        ]:
            stored, _ = await manager.apply_action(
                lobby.id, connection_id, team, DraftAction(kind, candidate)
            )
        assert stored.status == DraftStatus.AWAITING_WINNER

        await manager.propose_winner(lobby.id, "c-red", "Red", "Blue")
        stored, events = await manager.confirm_winner(lobby.id, "c-blue", "Blue", "Blue", True)

        assert stored.priority_team == "Blue"
        assert stored.draft.round_number == 2
        assert events[0].type == DraftEventType.WINNER_CONFIRMED


class TestDisconnect:
    """Tests for connection departure."""

    @pytest.mark.asyncio
    async def test_slot_kept_after_start(self, manager: LobbyManager) -> None:
        """A team that drops mid-draft keeps its slot and can reclaim it."""
        lobby, _ = await lobby_with_teams(manager)

        results = await manager.disconnect("c-blue")

        lobby_id, updated, events = results[0]
        assert lobby_id == lobby.id
        assert updated.get_team("Blue").connection_id is None
        assert events[0].type == DraftEventType.TEAMS_UPDATED

        await manager.join_lobby(lobby.id, "c-new")
        updated, _ = await manager.set_team_name(lobby.id, "c-new", "Blue")
        assert updated.get_team("Blue").connection_id == "c-new"
        assert updated.status == DraftStatus.DRAFTING

    @pytest.mark.asyncio
    async def test_slot_released_before_start(self, manager: LobbyManager) -> None:
        lobby = await manager.create_lobby(GameTitle.CS2, DraftFormat.BO1)
        await manager.join_lobby(lobby.id, "c1")
        await manager.join_lobby(lobby.id, "c2")
        await manager.set_team_name(lobby.id, "c1", "Red")

        await manager.disconnect("c1")

        assert manager.get_lobby(lobby.id).teams == []

    @pytest.mark.asyncio
    async def test_last_member_deletes_lobby(self, manager: LobbyManager) -> None:
        lobby, _ = await lobby_with_teams(manager)

        await manager.disconnect("c-red")
        results = await manager.disconnect("c-blue")

        assert results == [(lobby.id, None, [])]
        assert manager.get_lobby(lobby.id) is None

    @pytest.mark.asyncio
    async def test_admin_lobby_survives(self, manager: LobbyManager) -> None:
        lobby, _ = await lobby_with_teams(manager, admin=True)

        await manager.disconnect("c-red")
        await manager.disconnect("c-blue")

        assert manager.get_lobby(lobby.id) is not None

    @pytest.mark.asyncio
    async def test_unknown_connection(self, manager: LobbyManager) -> None:
        assert await manager.disconnect("ghost") == []
