"""
Test cases for the queue-based logging setup.
"""

import logging
import logging.handlers

from app.logging_config import ThreadSafeLoggingConfig


class TestThreadSafeLoggingConfig:
    """Test handler installation and library silencing."""

    def setup_method(self):
        self.root = logging.getLogger()
        self.saved_handlers = list(self.root.handlers)
        self.saved_level = self.root.level
        self.config = ThreadSafeLoggingConfig()

    def teardown_method(self):
        self.config.stop()
        self.root.handlers[:] = self.saved_handlers
        self.root.setLevel(self.saved_level)

    def test_installs_queue_handler(self):
        self.config.setup_logging(debug=False)

        assert any(isinstance(h, logging.handlers.QueueHandler) for h in self.root.handlers)
        assert self.root.level == logging.INFO

    def test_silences_noisy_libraries(self):
        self.config.setup_logging(debug=False)

        assert logging.getLogger("httpx").level == logging.CRITICAL
        assert logging.getLogger("werkzeug").level == logging.WARNING

    def test_debug_level(self):
        self.config.setup_logging(debug=True)

        assert self.root.level == logging.DEBUG

    def test_setup_twice_replaces_listener(self):
        self.config.setup_logging()
        self.config.setup_logging()

        queue_handlers = [h for h in self.root.handlers if isinstance(h, logging.handlers.QueueHandler)]
        assert len(queue_handlers) == 1

    def test_writes_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "publisher.log"
        self.config.setup_logging(log_file=log_file)

        logging.getLogger("app.test").info("published abcd1234")
        self.config.stop()

        assert "published abcd1234" in log_file.read_text(encoding="utf-8")

    def test_stop_detaches_queue_handler(self):
        self.config.setup_logging()
        self.config.stop()

        assert not any(isinstance(h, logging.handlers.QueueHandler) for h in self.root.handlers)
