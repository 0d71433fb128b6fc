"""
Retry policy with exponential backoff.
"""

from typing import Optional

from .types import RetryConfig


class RetryPolicy:
    """Decides whether a failed response is retried, and how long to wait first."""

    def __init__(self, config: Optional[RetryConfig] = None) -> None:
        self._config = config or RetryConfig()

    @property
    def config(self) -> RetryConfig:
        return self._config

    @property
    def max_retries(self) -> int:
        return self._config.max_retries

    def is_retryable_status(self, status_code: Optional[int]) -> bool:
        return status_code is not None and status_code in self._config.retryable_status_codes

    def should_retry(self, attempt_count: int, status_code: Optional[int]) -> bool:
        """Retry only below max_retries and for a retryable status.

        A missing status (network failure, timeout) is never retried.
        """
        return attempt_count < self._config.max_retries and self.is_retryable_status(status_code)

    def delay_for(self, attempt_count: int) -> int:
        """Backoff in milliseconds: base_delay_ms * 2 ** attempt_count."""
        delay = self._config.base_delay_ms * (2 ** attempt_count)
        if self._config.max_delay_ms is not None:
            delay = min(delay, self._config.max_delay_ms)
        return delay
