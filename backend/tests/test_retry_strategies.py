"""Tests for workflow retry strategies."""

import pytest
from core.exceptions import ExecutionCancelledError, InvalidWorkflowError
from workflow.models import RetryConfig
from workflow.retry_strategies import RetryStrategy, execute_with_retry


# ─── RetryStrategy creation ───

class TestRetryStrategyCreation:
    def test_none_strategy(self):
        s = RetryStrategy.none()
        assert s.max_retries == 0
        assert s.max_attempts == 1

    def test_explicit_strategy(self):
        s = RetryStrategy(max_retries=4, backoff_ms=200)
        assert s.max_retries == 4
        assert s.backoff_ms == 200
        assert s.max_attempts == 5

    def test_from_missing_config(self):
        s = RetryStrategy.from_config(None)
        assert s.max_retries == 0

    def test_from_config(self):
        s = RetryStrategy.from_config(RetryConfig(max_retries=3, backoff_ms=50))
        assert s.max_retries == 3
        assert s.backoff_ms == 50

    def test_from_config_uses_default_backoff(self):
        s = RetryStrategy.from_config(RetryConfig(max_retries=2), default_backoff_ms=750)
        assert s.backoff_ms == 750


class TestRetryConfigParsing:
    def test_camel_case_keys(self):
        config = RetryConfig.from_dict({"maxRetries": 2, "backoffMs": 10})
        assert config.max_retries == 2
        assert config.backoff_ms == 10

    def test_snake_case_keys(self):
        config = RetryConfig.from_dict({"max_retries": 1})
        assert config.max_retries == 1
        assert config.backoff_ms is None

    def test_negative_retries_rejected(self):
        with pytest.raises(InvalidWorkflowError):
            RetryConfig.from_dict({"maxRetries": -1})

    def test_non_positive_backoff_rejected(self):
        with pytest.raises(InvalidWorkflowError):
            RetryConfig.from_dict({"maxRetries": 1, "backoffMs": 0})


# ─── Delay computation ───

class TestDelayComputation:
    def test_linear_delay(self):
        s = RetryStrategy(max_retries=3, backoff_ms=1000)
        assert s.compute_delay(1) == 1.0
        assert s.compute_delay(2) == 2.0
        assert s.compute_delay(3) == 3.0

    def test_millisecond_backoff(self):
        s = RetryStrategy(max_retries=2, backoff_ms=250)
        assert s.compute_delay(2) == 0.5

    def test_zero_attempt_has_no_delay(self):
        assert RetryStrategy(max_retries=3).compute_delay(0) == 0.0


# ─── Should retry ───

class TestShouldRetry:
    def test_none_never_retries(self):
        s = RetryStrategy.none()
        assert s.should_retry(1) is False

    def test_exceeds_max_retries(self):
        s = RetryStrategy(max_retries=3)
        assert s.should_retry(3) is True
        assert s.should_retry(4) is False


# ─── Execute with retry ───

async def _no_sleep(delay):
    return None


class TestExecuteWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_attempt(self):
        call_count = 0

        async def func():
            nonlocal call_count
            call_count += 1
            return 42

        result = await execute_with_retry(func, RetryStrategy(max_retries=3, backoff_ms=1))
        assert result == 42
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_retries_on_failure(self):
        call_count = 0

        async def func():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise ValueError("flaky")
            return "ok"

        result = await execute_with_retry(func, RetryStrategy(max_retries=5, backoff_ms=1))
        assert result == "ok"
        assert call_count == 3

    @pytest.mark.asyncio
    async def test_exhausts_retries(self):
        call_count = 0

        async def func():
            nonlocal call_count
            call_count += 1
            raise TimeoutError("always timeout")

        with pytest.raises(TimeoutError):
            await execute_with_retry(func, RetryStrategy(max_retries=2, backoff_ms=1))
        assert call_count == 3

    @pytest.mark.asyncio
    async def test_cancellation_is_not_retried(self):
        call_count = 0

        async def func():
            nonlocal call_count
            call_count += 1
            raise ExecutionCancelledError("exec_1")

        with pytest.raises(ExecutionCancelledError):
            await execute_with_retry(func, RetryStrategy(max_retries=5, backoff_ms=1))
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_sleep_receives_linear_delays(self):
        delays = []

        async def record_sleep(delay):
            delays.append(delay)

        async def func():
            raise RuntimeError("fail")

        with pytest.raises(RuntimeError):
            await execute_with_retry(
                func, RetryStrategy(max_retries=3, backoff_ms=100), sleep=record_sleep
            )
        assert delays == [0.1, 0.2, 0.3]

    @pytest.mark.asyncio
    async def test_on_retry_callback(self):
        retries = []

        async def func():
            if len(retries) < 2:
                raise ConnectionError("fail")
            return "done"

        def on_retry(attempt, error, delay):
            retries.append(attempt)

        result = await execute_with_retry(
            func,
            RetryStrategy(max_retries=5, backoff_ms=1),
            on_retry=on_retry,
            sleep=_no_sleep,
        )
        assert result == "done"
        assert retries == [1, 2]
