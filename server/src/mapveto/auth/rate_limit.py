"""Rate limiting for REST endpoints.

Uses SlowAPI to keep lobby creation through the admin API from being
flooded.
"""

from collections.abc import Callable

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from mapveto.settings import get_settings

# Create the limiter instance using IP address as the key
limiter = Limiter(key_func=get_remote_address)


def _lobby_create_limit() -> str:
    return get_settings().lobby_create_limit


def create_rate_limit_dependency(limit: str | Callable[[], str], name: str) -> Callable:
    """Create a rate limit dependency for use with FastAPI routes.

    Args:
        limit: Rate limit in format "requests/period" (e.g., "5/minute"),
            or a callable returning one
        name: Unique name for this rate limit (used by SlowAPI for tracking)

    Returns:
        An async dependency function that applies rate limiting
    """
    # Create the decorated function ONCE at dependency creation time,
    # not on every request. SlowAPI uses function identity to track limits.
    @limiter.limit(limit)
    async def _check_limit(request: Request, response: Response) -> None:
        pass

    # Give each function a unique name so SlowAPI tracks them separately
    _check_limit.__name__ = f"_check_limit_{name}"

    async def rate_limit_dependency(request: Request, response: Response) -> None:
        """Apply rate limiting to this request."""
        # Skip rate limiting if disabled (e.g., during tests)
        if not get_settings().rate_limiting_enabled:
            return

        await _check_limit(request, response)

    return rate_limit_dependency


lobby_create_rate_limit = create_rate_limit_dependency(_lobby_create_limit, "lobby_create")
