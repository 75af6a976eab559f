from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class ThrottleDecision:
    """Outcome of a single admission check.

    Attributes:
        allowed: True if the request was admitted and counted.
        limit: Configured admissions per window.
        remaining: Admissions left in the current window after this one.
        reset_after: Seconds until the oldest counted request leaves the window.
        retry_after: Seconds to wait before retrying, set only on rejection.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_after: int
    retry_after: Optional[int] = None

    def headers(self) -> Dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(max(0, self.remaining)),
            "X-RateLimit-Reset": str(self.reset_after),
        }
        if self.retry_after is not None:
            headers["Retry-After"] = str(self.retry_after)
        return headers
