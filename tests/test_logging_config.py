from __future__ import annotations

import io
import logging as py_logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from fakes import FakeClock

import pail.logging as pail_logging
from pail.context import new_collection_retry_context
from pail.errors import DocumentNotFoundError, NetworkError, OverloadError, RetryLimitBreachedError


@pytest.fixture(autouse=True)
def _restore_pail_logger() -> Iterator[None]:
    logger = py_logging.getLogger(pail_logging.ROOT_LOGGER)
    level = logger.level
    yield
    while pail_logging._installed:
        handler = pail_logging._installed.pop()
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)


def _flaky(errors: list[BaseException]):
    def operation(handle: object) -> str:
        if errors:
            raise errors.pop(0)
        return "ok"

    return operation


def test_package_import_installs_null_handler() -> None:
    import pail  # noqa: F401

    handlers = py_logging.getLogger("pail").handlers

    assert sum(isinstance(handler, py_logging.NullHandler) for handler in handlers) == 1


def test_transient_failure_renders_retry_fields(clock: FakeClock) -> None:
    stream = io.StringIO()
    pail_logging.configure_logging("WARN", stream)

    new_collection_retry_context(2, 0.0, None, _flaky([OverloadError("busy")]), sleep=clock.sleep).run(object())

    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert "WARNING pail.context attempt=1 tries=1/2 Transient store failure" in lines[0]
    assert "busy" in lines[0]


def test_exhaustion_is_logged_with_final_counts(clock: FakeClock) -> None:
    stream = io.StringIO()
    pail_logging.configure_logging("ERROR", stream)
    operation = _flaky([NetworkError("a"), NetworkError("b")])
    context = new_collection_retry_context(1, 0.0, None, operation, sleep=clock.sleep)

    with pytest.raises(RetryLimitBreachedError):
        context.run(object())

    output = stream.getvalue()
    assert "ERROR pail.context attempt=2 tries=2/1 Store call exhausted retries" in output
    assert "Transient" not in output


def test_records_attach_retry_fields(caplog: pytest.LogCaptureFixture, clock: FakeClock) -> None:
    caplog.set_level(py_logging.DEBUG, logger="pail")
    operation = _flaky([DocumentNotFoundError("gone")])
    context = new_collection_retry_context(3, 0.0, None, operation, sleep=clock.sleep)

    with pytest.raises(DocumentNotFoundError):
        context.run(object())

    permanent = [record for record in caplog.records if record.getMessage().startswith("Permanent")]
    assert len(permanent) == 1
    assert (permanent[0].attempt, permanent[0].tries, permanent[0].limit) == (1, 0, 3)


def test_records_outside_the_retry_loop_get_placeholders() -> None:
    stream = io.StringIO()
    pail_logging.configure_logging("INFO", stream)

    py_logging.getLogger("pail.bucket").info("plain message")

    assert "attempt=- tries=-/- plain message" in stream.getvalue()


@pytest.mark.parametrize(
    ("level", "expected"),
    [("warning", py_logging.WARNING), (" warn ", py_logging.WARNING), ("bogus", py_logging.INFO), (10, 10)],
)
def test_resolve_level(level: str | int, expected: int) -> None:
    assert pail_logging.resolve_level(level) == expected


def test_reconfigure_replaces_only_its_own_handlers() -> None:
    logger = py_logging.getLogger("pail")
    foreign = py_logging.NullHandler()
    logger.addHandler(foreign)
    try:
        pail_logging.configure_logging("INFO", io.StringIO())
        pail_logging.configure_logging("DEBUG", io.StringIO())

        streams = [handler for handler in logger.handlers if type(handler) is py_logging.StreamHandler]
        assert len(streams) == 1
        assert streams[0].level == py_logging.DEBUG
        assert foreign in logger.handlers
    finally:
        logger.removeHandler(foreign)


def test_log_file_captures_debug_attempts_while_stream_stays_quiet(tmp_path: Path, clock: FakeClock) -> None:
    stream = io.StringIO()
    log_file = tmp_path / "logs" / "pail.log"
    pail_logging.configure_logging("ERROR", stream, log_file=log_file)

    new_collection_retry_context(1, 0.0, None, _flaky([OverloadError("busy")]), sleep=clock.sleep).run(object())
    for handler in pail_logging._installed:
        handler.flush()

    assert stream.getvalue() == ""
    written = log_file.read_text(encoding="utf-8")
    assert "attempt=1 tries=0/1 Store call started" in written
    assert "attempt=2 tries=1/1 Store call started" in written


def test_unwritable_log_file_falls_back_to_stream(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def raise_os_error(*args: object, **kwargs: object) -> py_logging.Handler:
        raise OSError("disk full")

    monkeypatch.setattr(pail_logging.py_logging, "FileHandler", raise_os_error)
    stream = io.StringIO()

    logger = pail_logging.configure_logging("INFO", stream, log_file=tmp_path / "pail.log")

    assert pail_logging._installed == [h for h in logger.handlers if type(h) is py_logging.StreamHandler]
    assert "Could not open log file" in stream.getvalue()
