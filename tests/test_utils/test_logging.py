"""
Тесты настройки логгера пакета.
"""

import logging

from splatquant.utils.logging import format_table_prefix, get_logger, setup_logger


class TestSetupLogger:

    def test_single_handler(self):
        logger = setup_logger()
        setup_logger(logging.DEBUG)

        assert logger is get_logger()
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert not logger.propagate

    def test_format(self):
        handler = setup_logger().handlers[0]
        record = logging.LogRecord(
            "splatquant", logging.WARNING, __file__, 1, "device lost", None, None
        )
        assert handler.formatter.format(record).endswith("WARNING: device lost")


class TestTablePrefix:

    def test_without_group(self):
        assert format_table_prefix({"N": 10, "D": 3, "K": 4}) == "[N=10 D=3 K=4]"

    def test_with_group(self):
        meta = {"N": 10, "D": 3, "K": 4, "group": "colors"}
        assert format_table_prefix(meta) == "[N=10 D=3 K=4 group=colors]"
