import logging

import pytest

from hearo.utils.log import ColoredFormatter, setup_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_writes_file(tmp_path, root_logger):
    log_file = tmp_path / "logs" / "hearo.log"
    setup_logging("warning", log_file=log_file)
    assert root_logger.level == logging.WARNING

    logging.getLogger("hearo.test").warning("doorbell at Front Door")
    logging.getLogger("hearo.test").info("not written")
    for handler in root_logger.handlers:
        handler.flush()
    text = log_file.read_text(encoding="utf-8")
    assert "[WARNING] hearo.test: doorbell at Front Door" in text
    assert "not written" not in text


def test_debug_flag_overrides_level(root_logger):
    setup_logging("ERROR", debug=True)
    assert root_logger.level == logging.DEBUG


def test_colored_formatter():
    record = logging.LogRecord("hearo", logging.ERROR, __file__, 1, "fire", None, None)
    plain = ColoredFormatter("%(levelname)s %(message)s", "%H:%M:%S", use_color=False).format(record)
    colored = ColoredFormatter("%(levelname)s %(message)s", "%H:%M:%S", use_color=True).format(record)
    assert plain == "ERROR fire"
    assert colored == "\033[31mERROR fire\033[0m"
