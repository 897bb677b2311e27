import io
import logging
import sys

from image_inventory import logger as ii_logger


def _stderr_handlers(base: logging.Logger) -> list[logging.Handler]:
    return [h for h in base.handlers if getattr(h, "_image_inventory_stderr", False)]


def test_setup_logger_idempotent_handlers():
    """Calling setup_logger() repeatedly should leave exactly one stderr StreamHandler."""
    base = ii_logger.setup_logger(level=logging.DEBUG)
    _ = ii_logger.setup_logger(level=logging.DEBUG)

    assert len(_stderr_handlers(base)) == 1
    assert base.propagate is False


def test_setup_logger_follows_swapped_stderr(monkeypatch):
    """If stderr is replaced between calls, the handler writes to the new stream."""
    base = ii_logger.setup_logger(level=logging.DEBUG)

    class DummyStream:
        def __init__(self):
            self.lines = []

        def write(self, s):
            self.lines.append(s)

        def flush(self):
            pass

    dummy = DummyStream()
    monkeypatch.setattr(sys, "stderr", dummy)
    _ = ii_logger.setup_logger(level=logging.DEBUG)

    handlers = _stderr_handlers(base)
    assert len(handlers) == 1
    assert handlers[0].stream is dummy


def test_env_level_override(monkeypatch):
    monkeypatch.setenv("IMAGE_INVENTORY_LOG_LEVEL", "error")
    base = ii_logger.setup_logger(level=logging.DEBUG)
    assert base.level == logging.ERROR
    monkeypatch.delenv("IMAGE_INVENTORY_LOG_LEVEL")
    ii_logger.setup_logger()


def test_get_logger_returns_child():
    child = ii_logger.get_logger("decoder")
    assert child.name == "image_inventory.decoder"
    assert ii_logger.get_logger() is logging.getLogger("image_inventory")


def test_setup_logger_tolerates_closed_previous_stderr(monkeypatch):
    """A closed stderr from an earlier call must not break re-configuration."""
    old = io.StringIO()
    monkeypatch.setattr(sys, "stderr", old)
    base = ii_logger.setup_logger(level=logging.DEBUG)
    old.close()

    fresh = io.StringIO()
    monkeypatch.setattr(sys, "stderr", fresh)
    _ = ii_logger.setup_logger(level=logging.DEBUG)

    handlers = _stderr_handlers(base)
    assert len(handlers) == 1
    assert handlers[0].stream is fresh
    base.error("still logging")
    assert "still logging" in fresh.getvalue()
