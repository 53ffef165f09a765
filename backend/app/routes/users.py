"""User profile routes."""

from fastapi import APIRouter, Query, Request, Response, status

from perkyjobs.commerce.errors import NotFoundError

from ..auth import AgentKey
from ..database import Profiles
from ..logging_config import get_logger
from ..models import UserListResponse, UserResponse, UserUpsert
from ..rate_limit import limiter

logger = get_logger("api.users")
router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserListResponse)
@limiter.limit("60/minute")
def leaderboard(request: Request, profiles: Profiles, limit: int = Query(20, ge=1, le=100)):
    """Profiles ordered by reputation score, highest first."""
    return UserListResponse(users=[UserResponse.from_profile(p) for p in profiles.leaderboard(limit)])


@router.get("/{handle}", response_model=UserResponse)
@limiter.limit("60/minute")
def get_user(request: Request, handle: str, profiles: Profiles):
    return UserResponse.from_profile(profiles.get_by_handle(handle))


@router.post("", response_model=UserResponse)
@limiter.limit("20/minute")
def upsert_user(
    request: Request,
    response: Response,
    body: UserUpsert,
    _auth: AgentKey,
    profiles: Profiles,
):
    """Create a profile, or update its wallet address and verification flag."""
    try:
        profiles.get_by_handle(body.handle)
    except NotFoundError:
        response.status_code = status.HTTP_201_CREATED

    logger.info(f"POST /api/users | handle={body.handle} | created={response.status_code == 201}")
    profile = profiles.upsert_profile(
        body.handle,
        wallet_address=body.wallet_address,
        self_verified=body.self_verified,
    )
    return UserResponse.from_profile(profile)
