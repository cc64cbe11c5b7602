import logging

import pytest

from gotenberg.logger import LeveledLogger

NAME = "tests.leveled"


@pytest.fixture
def leveled():
    return LeveledLogger(logging.getLogger(NAME))


def test_each_method_logs_at_its_level(caplog, leveled):
    with caplog.at_level(logging.DEBUG, logger=NAME):
        leveled.error("retry", "a")
        leveled.warn("retry", "b")
        leveled.info("retry", "c")
        leveled.debug("retry", "d")
    assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
        (logging.ERROR, "retry: [a]"),
        (logging.WARNING, "retry: [b]"),
        (logging.INFO, "retry: [c]"),
        (logging.DEBUG, "retry: [d]"),
    ]


def test_values_are_listed_in_brackets(caplog, leveled):
    with caplog.at_level(logging.DEBUG, logger=NAME):
        leveled.error("failed", "attempt", 2, "ok", True)
    assert [r.getMessage() for r in caplog.records] == ["failed: [attempt 2 ok true]"]


def test_no_values_gives_empty_brackets(caplog, leveled):
    with caplog.at_level(logging.DEBUG, logger=NAME):
        leveled.info("done")
    assert [r.getMessage() for r in caplog.records] == ["done: []"]


def test_levels_below_threshold_are_dropped(caplog, leveled):
    with caplog.at_level(logging.WARNING, logger=NAME):
        leveled.debug("hidden", "x")
        leveled.info("hidden", "y")
        leveled.warn("shown", "z")
    assert [r.levelno for r in caplog.records] == [logging.WARNING]