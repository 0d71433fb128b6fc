"""
Retry Policy Tests
"""

from hypothesis import given, strategies as st

from ixrlib import RetryConfig, RetryPolicy


RETRYABLE = sorted(RetryConfig().retryable_status_codes)

max_retries = st.integers(min_value=0, max_value=10)
base_delays = st.integers(min_value=0, max_value=10_000)


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    @given(max_retries=max_retries, data=st.data(), status=st.sampled_from(RETRYABLE))
    def test_retries_below_limit(self, max_retries: int, data, status: int):
        if max_retries == 0:
            return
        attempt = data.draw(st.integers(min_value=0, max_value=max_retries - 1))
        policy = RetryPolicy(RetryConfig(max_retries=max_retries))
        assert policy.should_retry(attempt, status)

    @given(max_retries=max_retries, extra=st.integers(min_value=0, max_value=100),
           status=st.integers(min_value=100, max_value=599))
    def test_never_retries_at_or_above_limit(self, max_retries: int, extra: int, status: int):
        policy = RetryPolicy(RetryConfig(max_retries=max_retries))
        assert not policy.should_retry(max_retries + extra, status)

    @given(attempt=st.integers(min_value=0, max_value=2),
           status=st.integers(min_value=100, max_value=599).filter(lambda s: s not in RETRYABLE))
    def test_never_retries_other_statuses(self, attempt: int, status: int):
        assert not RetryPolicy().should_retry(attempt, status)

    def test_missing_status_is_not_retried(self):
        assert not RetryPolicy().should_retry(0, None)

    @given(base=base_delays, attempt=st.integers(min_value=0, max_value=20))
    def test_exponential_delay(self, base: int, attempt: int):
        policy = RetryPolicy(RetryConfig(base_delay_ms=base))
        assert policy.delay_for(attempt) == base * 2 ** attempt

    def test_default_delays(self):
        policy = RetryPolicy(RetryConfig(max_retries=3, base_delay_ms=1000))
        assert [policy.delay_for(n) for n in range(3)] == [1000, 2000, 4000]

    def test_delay_cap(self):
        policy = RetryPolicy(RetryConfig(base_delay_ms=1000, max_delay_ms=3000))
        assert [policy.delay_for(n) for n in range(4)] == [1000, 2000, 3000, 3000]

    def test_custom_statuses(self):
        policy = RetryPolicy(RetryConfig(retryable_status_codes={418}))
        assert policy.should_retry(0, 418)
        assert not policy.should_retry(0, 503)
