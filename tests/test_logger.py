from __future__ import annotations

import logging

from storesync.logger import RedactTokensFilter, get_logger


def make_record(msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord("storesync.test", logging.WARNING, __file__, 1, msg, args, None)


def test_bearer_tokens_are_masked() -> None:
    record = make_record("GET /cart failed: %s", "header Bearer abc.DEF-123 rejected")

    assert RedactTokensFilter().filter(record) is True
    assert record.getMessage() == "GET /cart failed: header Bearer *** rejected"


def test_plain_messages_are_left_alone() -> None:
    record = make_record("Fetched %s snapshot with %d entries.", "cart", 3)

    RedactTokensFilter().filter(record)

    assert record.args == ("cart", 3)
    assert record.getMessage() == "Fetched cart snapshot with 3 entries."


def test_http_libraries_are_quieted() -> None:
    get_logger(__name__)

    assert logging.getLogger("urllib3").level >= logging.WARNING
