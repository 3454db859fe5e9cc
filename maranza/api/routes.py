from __future__ import annotations

import logging
import random

import redis
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from maranza.actions import (
    advance_time,
    create_new_character,
    get_game_state,
    list_shop,
    list_sub_activities,
    perform_activity,
    purchase_item,
    reset,
)
from maranza.api.deps import get_game_redis, get_rng, get_tables, get_user_id
from maranza.api.models import (
    Activity,
    ActivityResult,
    AdvanceTimeRequest,
    Character,
    CharacterCreateRequest,
    GameStateResponse,
    MessageResponse,
    PurchaseRequest,
    PurchaseResponse,
    ShopItem,
)
from maranza.core.tables import ResolverTables
from maranza.errors import ConflictError, NotFoundError, PurchaseError

logger = logging.getLogger(__name__)

router = APIRouter()


def _refused(e: ValueError) -> HTTPException:
    if isinstance(e, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, ConflictError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(e))


def _failed(message: str) -> HTTPException:
    logger.exception(message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/game/state", response_model=GameStateResponse)
def game_state_route(
    r: redis.Redis = Depends(get_game_redis),
    user_id: int = Depends(get_user_id),
) -> GameStateResponse:
    try:
        return get_game_state(r=r, user_id=user_id)
    except Exception as e:
        raise _failed("Failed to get game state") from e


@router.post("/game/character", response_model=Character, status_code=status.HTTP_201_CREATED)
def create_character_route(
    payload: CharacterCreateRequest,
    r: redis.Redis = Depends(get_game_redis),
    user_id: int = Depends(get_user_id),
    rng: random.Random = Depends(get_rng),
) -> Character:
    try:
        return create_new_character(r=r, user_id=user_id, payload=payload, rng=rng)
    except ValueError as e:
        raise _refused(e) from e
    except Exception as e:
        raise _failed("Failed to create character") from e


@router.post("/game/activity/{activity_id}", response_model=ActivityResult)
def activity_route(
    activity_id: int,
    r: redis.Redis = Depends(get_game_redis),
    user_id: int = Depends(get_user_id),
    tables: ResolverTables = Depends(get_tables),
    rng: random.Random = Depends(get_rng),
) -> ActivityResult:
    try:
        return perform_activity(r=r, user_id=user_id, activity_id=activity_id, tables=tables, rng=rng)
    except ValueError as e:
        raise _refused(e) from e
    except Exception as e:
        raise _failed("Failed to complete activity") from e


@router.get("/game/activity/{activity_id}/sub-activities", response_model=list[Activity])
def sub_activities_route(activity_id: int, r: redis.Redis = Depends(get_game_redis)) -> list[Activity]:
    try:
        return list_sub_activities(r=r, activity_id=activity_id)
    except ValueError as e:
        raise _refused(e) from e
    except Exception as e:
        raise _failed("Failed to list sub-activities") from e


@router.post("/game/advance-time", response_model=MessageResponse)
def advance_time_route(
    payload: AdvanceTimeRequest,
    r: redis.Redis = Depends(get_game_redis),
    user_id: int = Depends(get_user_id),
) -> MessageResponse:
    try:
        advance_time(r=r, user_id=user_id, hours=payload.hours)
    except ValueError as e:
        raise _refused(e) from e
    except Exception as e:
        raise _failed("Failed to advance time") from e
    return MessageResponse(message="Time advanced successfully")


@router.post("/game/reset", response_model=MessageResponse)
def reset_route(
    r: redis.Redis = Depends(get_game_redis),
    user_id: int = Depends(get_user_id),
) -> MessageResponse:
    try:
        reset(r=r, user_id=user_id)
    except ConflictError as e:
        raise _refused(e) from e
    except Exception as e:
        raise _failed("Failed to reset game") from e
    return MessageResponse(message="Game reset successfully")


@router.get("/game/shop", response_model=list[ShopItem])
def shop_route(
    r: redis.Redis = Depends(get_game_redis),
    user_id: int = Depends(get_user_id),
) -> list[ShopItem]:
    try:
        return list_shop(r=r, user_id=user_id)
    except Exception as e:
        raise _failed("Failed to load shop") from e


@router.post("/game/shop/purchase", response_model=PurchaseResponse)
def purchase_route(
    payload: PurchaseRequest,
    r: redis.Redis = Depends(get_game_redis),
    user_id: int = Depends(get_user_id),
) -> PurchaseResponse | JSONResponse:
    try:
        return purchase_item(r=r, user_id=user_id, item_id=payload.item_id)
    except PurchaseError as e:
        # The client shows `message` from the body, same shape as a successful purchase.
        body = PurchaseResponse(success=False, message=str(e))
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(by_alias=True))
    except ValueError as e:
        raise _refused(e) from e
    except Exception as e:
        raise _failed("Failed to purchase item") from e
