"""
Tests for the retry helpers, error types and log capture.
"""
import pytest
from rich.panel import Panel

from netcontrol.utils.async_utils import RetryPolicy, call_with_retry, generate_id, run_blocking
from netcontrol.utils.errors import (
    ConfigurationError,
    InfeasibleTargetError,
    InvalidTransitionError,
    NetControlError,
    RunNotFoundError,
    StorageError,
)
from netcontrol.utils.logging import (
    DetailedLogFormatter,
    NetControlLogRecord,
    SimpleLogFormatter,
    build_logging_config,
    capture_logs,
    logger,
)


def test_retry_delay_grows_and_is_capped():
    policy = RetryPolicy(initial_delay=1.0, max_delay=5.0, backoff_factor=2.0, jitter=False)

    assert [policy.get_delay(attempt) for attempt in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]


@pytest.mark.asyncio
async def test_call_with_retry_recovers_from_transient_errors():
    calls = []

    def flaky(value):
        calls.append(value)
        if len(calls) < 3:
            raise StorageError("disk busy")
        return value * 2

    policy = RetryPolicy(max_retries=3, initial_delay=0, jitter=False)
    with capture_logs("warning") as capture:
        result = await call_with_retry(flaky, 21, policy=policy, exceptions=StorageError)

    assert result == 42
    assert len(calls) == 3
    assert capture.contains("Retrying 'flaky'")


@pytest.mark.asyncio
async def test_call_with_retry_reraises_after_exhaustion():
    def broken():
        raise StorageError("gone")

    policy = RetryPolicy(max_retries=2, initial_delay=0, jitter=False)
    with pytest.raises(StorageError):
        await call_with_retry(broken, policy=policy, exceptions=StorageError)


@pytest.mark.asyncio
async def test_call_with_retry_does_not_retry_other_errors():
    calls = []

    def wrong():
        calls.append(1)
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        await call_with_retry(wrong, policy=RetryPolicy(initial_delay=0), exceptions=StorageError)
    assert calls == [1]


@pytest.mark.asyncio
async def test_run_blocking_returns_result():
    assert await run_blocking(sum, [1, 2, 3]) == 6


def test_generate_id_is_unique_and_prefixed():
    first, second = generate_id("run-"), generate_id("run-")

    assert first.startswith("run-")
    assert first != second


def test_error_hierarchy_and_details():
    error = InfeasibleTargetError(["C", "F"], 2)

    assert isinstance(error, ConfigurationError)
    assert isinstance(error, NetControlError)
    assert error.to_dict() == {
        "code": "INFEASIBLE_TARGET_ERROR",
        "message": error.message,
        "details": {"targets": ["C", "F"], "max_path_length": 2},
    }
    assert isinstance(RunNotFoundError("run-1"), StorageError)

    transition = InvalidTransitionError("run-1", "Completed", "Ongoing")
    assert transition.details["current"] == "Completed"
    assert "run-1" in str(transition)


def test_capture_logs_filters_by_level():
    with capture_logs("warning") as capture:
        logger.info("routine message", component="scheduler")
        logger.warning("something odd", component="storage")

    assert capture.get_messages() == ["something odd"]
    assert capture.logs[0]["component"] == "storage"


def test_time_operation_logs_duration():
    with capture_logs("debug") as capture:
        with logger.time_operation("compute", component="network", level="debug"):
            pass

    assert capture.contains("Completed compute in")
    assert "duration" in capture.logs[-1]["context"]


def test_logging_config_adds_rotating_file(tmp_path):
    log_file = tmp_path / "logs" / "netcontrol.log"
    config = build_logging_config("debug", str(log_file))

    assert config["loggers"]["netcontrol"]["handlers"] == ["rich_console", "rotating_file"]
    assert config["handlers"]["rich_console"]["detailed"] is True
    assert config["handlers"]["rotating_file"]["filename"] == str(log_file)
    assert log_file.parent.is_dir()


@pytest.mark.asyncio
async def test_call_with_retry_gives_up_on_listed_errors():
    calls = []

    def missing():
        calls.append(1)
        raise RunNotFoundError("run-1")

    with pytest.raises(RunNotFoundError):
        await call_with_retry(
            missing,
            policy=RetryPolicy(initial_delay=0),
            exceptions=StorageError,
            give_up_on=(RunNotFoundError,),
        )
    assert calls == [1]


@pytest.mark.asyncio
async def test_call_with_retry_awaits_executor_work():
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise StorageError("database is locked")
        return "saved"

    policy = RetryPolicy(max_retries=2, initial_delay=0, jitter=False)
    assert await call_with_retry(run_blocking, flaky, policy=policy, exceptions=StorageError) == "saved"
    assert len(attempts) == 2


def test_record_line_uses_the_operation_emoji():
    record = NetControlLogRecord("info", "claimed run-1", component="Scheduler", operation="claim")

    line = SimpleLogFormatter(show_time=False).format_record(record).plain

    assert line == "📌 [INFO] [scheduler] claim: claimed run-1"
    assert NetControlLogRecord("warning", "odd", operation="unknown").emoji == "⚠️"


def test_detailed_formatter_frames_errors_with_context():
    record = NetControlLogRecord("error", "checkpoint failed", component="storage", context={"run": "run-1"})

    rendered = DetailedLogFormatter().format_record(record)

    assert isinstance(rendered, Panel)
    assert rendered.title == "ERROR in storage"
