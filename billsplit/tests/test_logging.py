from __future__ import annotations

import logging

from billsplit.runtime.logging import LOG_FORMAT_DEBUG, ROOT_LOGGER_NAME, get_logger, set_log_level


def test_get_logger_nests_under_package_namespace() -> None:
    assert get_logger("billsplit.receipt.formatter").name == "billsplit.receipt.formatter"
    assert get_logger("scripts.tool").name == "billsplit.scripts.tool"
    assert get_logger(ROOT_LOGGER_NAME).name == ROOT_LOGGER_NAME


def test_set_log_level_switches_to_verbose_format() -> None:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    previous = root.level
    get_logger(__name__)
    try:
        set_log_level(logging.DEBUG)
        assert root.level == logging.DEBUG
        assert all(handler.formatter._fmt == LOG_FORMAT_DEBUG for handler in root.handlers if handler.formatter)
    finally:
        set_log_level(previous)
