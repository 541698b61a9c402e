from __future__ import annotations

from dataclasses import dataclass

import httpx


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with exponential backoff."""

    max_retries: int = 3
    backoff_base: float = 0.5  # seconds
    backoff_factor: float = 2.0
    max_backoff: float = 10.0

    def compute_backoff(self, attempt: int) -> float:
        delay = self.backoff_base * (self.backoff_factor ** max(0, attempt - 1))
        return min(delay, self.max_backoff)

    def should_retry_status(self, status_code: int) -> bool:
        # 501 means the server will never support the request.
        return status_code == 429 or (status_code >= 500 and status_code != 501)

    def should_retry_error(self, exc: BaseException) -> bool:
        return isinstance(exc, httpx.TransportError)
