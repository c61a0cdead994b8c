# src/crudkit/tests/test_logging/test_filters.py
import asyncio
import logging

from crudkit.core.logging.filters import (
    CorrelationIdFilter,
    RedactFilter,
    correlation_scope,
    get_correlation_id,
    set_correlation_id,
)


def make_record():
    # name, level, pathname, lineno, msg, args, exc_info
    return logging.LogRecord("test", logging.INFO, __file__, 1, "hello %s", ("world",), None)


def test_correlation_id_filter_defaults_to_dash():
    rec = make_record()
    set_correlation_id(None)
    f = CorrelationIdFilter()
    assert f.filter(rec) is True
    assert rec.correlation_id == "-"


def test_correlation_id_filter_uses_contextvar():
    rec = make_record()
    with correlation_scope("abc-123"):
        CorrelationIdFilter().filter(rec)
    assert rec.correlation_id == "abc-123"


def test_correlation_id_filter_respects_record_extra():
    rec = make_record()
    rec.correlation_id = "explicit"
    with correlation_scope("context-id"):
        CorrelationIdFilter().filter(rec)
    assert rec.correlation_id == "explicit"


def test_correlation_scope_generates_and_restores():
    set_correlation_id(None)
    with correlation_scope() as cid:
        assert cid
        assert get_correlation_id() == cid
    assert get_correlation_id() is None


async def test_correlation_id_is_isolated_between_tasks():
    async def worker(name: str) -> str | None:
        with correlation_scope(name):
            await asyncio.sleep(0)
            return get_correlation_id()

    results = await asyncio.gather(worker("a"), worker("b"))
    assert results == ["a", "b"]


def test_redact_filter_masks_sensitive_extras():
    rec = make_record()
    rec.password = "hunter2"
    rec.Token = "t"
    rec.model = "User"
    assert RedactFilter().filter(rec) is True
    assert rec.password == RedactFilter.MASK
    assert rec.Token == RedactFilter.MASK
    assert rec.model == "User"
