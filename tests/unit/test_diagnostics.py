from __future__ import annotations

import logging
import tempfile
import unittest
from pathlib import Path

from lazythemes import diagnostics


class ConfigureLoggingTests(unittest.TestCase):
    def tearDown(self) -> None:
        logger = diagnostics.get_logger()
        if diagnostics._HANDLER is not None:
            logger.removeHandler(diagnostics._HANDLER)
            diagnostics._HANDLER.close()
            diagnostics._HANDLER = None
        logger.setLevel(logging.NOTSET)
        logger.propagate = True

    def test_without_log_file_only_null_handler(self) -> None:
        info = diagnostics.configure_logging(None)
        self.assertEqual(info["handlers"], "null")
        logger = diagnostics.get_logger()
        self.assertTrue(any(isinstance(handler, logging.NullHandler) for handler in logger.handlers))
        self.assertFalse(any(isinstance(handler, logging.FileHandler) for handler in logger.handlers))

    def test_file_handler_writes_key_value_lines(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_path = Path(tmp) / "logs" / "lazythemes.log"
            info = diagnostics.configure_logging(log_path, verbose=True)
            logging.getLogger("lazythemes.catalog.remote").debug("fetched %d themes", 3)
            diagnostics._HANDLER.flush()

            text = log_path.read_text(encoding="utf-8")
            self.assertEqual(info["log_path"], str(log_path))
            self.assertIn("level=DEBUG", text)
            self.assertIn("logger=lazythemes.catalog.remote", text)
            self.assertIn("msg=fetched 3 themes", text)

    def test_reconfiguring_replaces_previous_file_handler(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            diagnostics.configure_logging(Path(tmp) / "a.log")
            diagnostics.configure_logging(Path(tmp) / "b.log")
            file_handlers = [h for h in diagnostics.get_logger().handlers if isinstance(h, logging.FileHandler)]
            self.assertEqual(len(file_handlers), 1)
            self.assertTrue(file_handlers[0].baseFilename.endswith("b.log"))


if __name__ == "__main__":
    unittest.main()
