from __future__ import annotations

import json
import logging
import unittest
from unittest.mock import patch

from hudur.logging_utils import JsonFormatter, setup_json_logging
from hudur.settings import Settings


class JsonLoggingTests(unittest.TestCase):
    def test_formatter_includes_extra_fields(self) -> None:
        record = logging.LogRecord(
            name="hudur.engine",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="attendance_calculation_completed",
            args=(),
            exc_info=None,
        )
        record.record_count = 3
        record.rule_name = "خدمات معاونة"

        payload = json.loads(JsonFormatter().format(record))

        self.assertEqual(payload["level"], "INFO")
        self.assertEqual(payload["logger"], "hudur.engine")
        self.assertEqual(payload["message"], "attendance_calculation_completed")
        self.assertEqual(payload["record_count"], 3)
        self.assertEqual(payload["rule_name"], "خدمات معاونة")

    def test_setup_uses_configured_level(self) -> None:
        root_logger = logging.getLogger()
        previous_handlers = list(root_logger.handlers)
        previous_level = root_logger.level
        try:
            with patch("hudur.logging_utils.get_settings", return_value=Settings(log_level="debug", log_json=True)):
                setup_json_logging()
            self.assertEqual(root_logger.level, logging.DEBUG)
            self.assertEqual(len(root_logger.handlers), 1)
            self.assertIsInstance(root_logger.handlers[0].formatter, JsonFormatter)
        finally:
            root_logger.handlers[:] = previous_handlers
            root_logger.setLevel(previous_level)


if __name__ == "__main__":
    unittest.main()
