"""
In-memory sliding-window rate limiting for sensitive endpoints (login, AI uploads).
"""
import logging
import time
from typing import Dict, List, Tuple
from fastapi import Request, HTTPException, status

logger = logging.getLogger(__name__)

# {(scope, ip): [timestamp, ...]}
rate_limit_store: Dict[Tuple[str, str], List[float]] = {}


def get_client_ip(request: Request) -> str:
    """Extract client IP address, honouring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class RateLimiter:
    """
    FastAPI dependency limiting requests per client IP within a scope.

    Usage:
        @router.post("/login", dependencies=[Depends(RateLimiter("login", 10))])
    """

    def __init__(self, scope: str, max_requests: int, window_seconds: int = 60):
        self.scope = scope
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    def _evict_idle(self, cutoff: float) -> None:
        """Drop this scope's clients whose last hit is outside the window."""
        idle = [
            key for key, hits in list(rate_limit_store.items())
            if key[0] == self.scope and (not hits or hits[-1] <= cutoff)
        ]
        for key in idle:
            rate_limit_store.pop(key, None)

    def __call__(self, request: Request) -> None:
        key = (self.scope, get_client_ip(request))
        now = time.time()
        cutoff = now - self.window_seconds
        self._evict_idle(cutoff)

        hits = [ts for ts in rate_limit_store.get(key, []) if ts > cutoff]
        if len(hits) >= self.max_requests:
            logger.warning(f"Rate limit exceeded: scope={self.scope}, ip={key[1]}, hits={len(hits)}")
            rate_limit_store[key] = hits
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Too many {self.scope} attempts. Try again in {self.window_seconds} seconds."
            )

        hits.append(now)
        rate_limit_store[key] = hits


def reset_rate_limits() -> None:
    rate_limit_store.clear()
