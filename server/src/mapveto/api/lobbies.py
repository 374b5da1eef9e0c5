"""Lobby API endpoints.

This is the administrator surface: it lists lobbies, creates lobbies that
wait for an explicit start, and deletes lobbies. Teams and observers take
part through the WebSocket gateway.
"""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from mapveto.auth.rate_limit import lobby_create_rate_limit
from mapveto.draft.errors import ConfigurationError, DraftError, NotFoundError
from mapveto.draft.rules import (
    ARENA_MODE_MAPS,
    ARENA_MODES,
    DEFAULT_MAP_POOLS,
    MAP_CATALOGUES,
    MODE_LABELS,
    DraftFormat,
    GameTitle,
)
from mapveto.lobby.manager import LobbyManager
from mapveto.ws.lobby_handler import LobbyGateway, serialize_lobby

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lobbies", tags=["lobbies"])
map_pool_router = APIRouter(tags=["map-pool"])


def get_lobby_manager(request: Request) -> LobbyManager:
    """Get the lobby store of the running application."""
    return request.app.state.lobby_manager


def get_lobby_gateway(request: Request) -> LobbyGateway:
    """Get the WebSocket gateway of the running application."""
    return request.app.state.lobby_gateway


class CreateLobbyRequest(BaseModel):
    """Request body for creating an administrator lobby."""

    lobby_id: str | None = Field(default=None, alias="lobbyId")
    title: GameTitle
    format: DraftFormat
    coin_flip: bool | None = Field(default=None, alias="coinFlip")
    knife_decider: bool = Field(default=False, alias="knifeDecider")
    pool_size: int = Field(default=7, alias="poolSize")
    modes_size: int = Field(default=4, alias="modesSize")
    custom_map_pool: list[str] | None = Field(default=None, alias="customMapPool")
    strict_turns: bool | None = Field(default=None, alias="strictTurns")

    model_config = {"populate_by_name": True}


class CreateLobbyResponse(BaseModel):
    """Response for creating a lobby."""

    id: str
    lobby: dict[str, Any]


class LobbyListItem(BaseModel):
    """A lobby item in the list response."""

    id: str
    title: str
    format: str
    status: str
    admin: bool
    teams: list[str]
    member_count: int = Field(alias="memberCount")
    observer_count: int = Field(alias="observerCount")
    step_cursor: int = Field(alias="stepCursor")
    created_at: datetime = Field(alias="createdAt")

    model_config = {"populate_by_name": True}


class LobbyListResponse(BaseModel):
    """Response for listing lobbies."""

    lobbies: list[LobbyListItem]


@router.get("", response_model=LobbyListResponse, response_model_by_alias=True)
async def list_lobbies(
    manager: LobbyManager = Depends(get_lobby_manager),
) -> LobbyListResponse:
    """List every active lobby, oldest first."""
    items = [
        LobbyListItem(
            id=lobby.id,
            title=lobby.title.value,
            format=lobby.format.value,
            status=lobby.status.value,
            admin=lobby.admin,
            teams=lobby.team_names,
            member_count=len(lobby.members),
            observer_count=len(lobby.observers),
            step_cursor=lobby.step_cursor,
            created_at=lobby.created_at,
        )
        for lobby in manager.list_lobbies()
    ]
    return LobbyListResponse(lobbies=items)


@router.post(
    "",
    response_model=CreateLobbyResponse,
    status_code=201,
    dependencies=[Depends(lobby_create_rate_limit)],
)
async def create_lobby(
    request: CreateLobbyRequest,
    manager: LobbyManager = Depends(get_lobby_manager),
) -> CreateLobbyResponse:
    """Create an administrator lobby.

    Administrator lobbies persist with no members and start only when a
    ``start`` message is sent over the WebSocket.
    """
    options = manager.build_options(
        coin_flip=request.coin_flip,
        knife_decider=request.knife_decider,
        pool_size=request.pool_size,
        modes_size=request.modes_size,
        custom_map_pool=request.custom_map_pool,
        strict_turns=request.strict_turns,
    )

    try:
        lobby = await manager.create_lobby(
            request.title,
            request.format,
            options,
            lobby_id=request.lobby_id,
            admin=True,
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except DraftError as e:
        if e.code == "lobby_exists":
            raise HTTPException(status_code=409, detail=e.message) from e
        raise HTTPException(status_code=400, detail=e.message) from e

    logger.info(f"Lobby {lobby.id} created via API")

    return CreateLobbyResponse(id=lobby.id, lobby=serialize_lobby(lobby))


@router.get("/{lobby_id}")
async def get_lobby(
    lobby_id: str,
    manager: LobbyManager = Depends(get_lobby_manager),
) -> dict[str, Any]:
    """Get lobby details by id."""
    try:
        lobby = manager.require_lobby(lobby_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Lobby not found") from e

    return {"lobby": serialize_lobby(lobby)}


@router.delete("/{lobby_id}")
async def delete_lobby(
    lobby_id: str,
    gateway: LobbyGateway = Depends(get_lobby_gateway),
) -> dict[str, Any]:
    """Delete a lobby and notify everyone subscribed to it."""
    success = await gateway.delete_lobby(lobby_id)
    if not success:
        raise HTTPException(status_code=404, detail="Lobby not found")

    logger.info(f"Lobby {lobby_id} deleted via API")

    return {"success": True}


@map_pool_router.get("/map-pool")
async def get_map_pool() -> dict[str, Any]:
    """Default map pools, full catalogues and arena modes per title."""
    return {
        "mapPool": {title.value: list(maps) for title, maps in DEFAULT_MAP_POOLS.items()},
        "mapCatalogues": {title.value: list(maps) for title, maps in MAP_CATALOGUES.items()},
        "modes": {
            mode: {"label": MODE_LABELS[mode], "maps": list(ARENA_MODE_MAPS[mode])}
            for mode in ARENA_MODES
        },
    }
