from __future__ import annotations

import io
import logging

from devmirror.core.log import LOGGER_NAME, configure_logging


def test_configure_logging_is_idempotent() -> None:
    first = io.StringIO()
    second = io.StringIO()

    configure_logging(stream=first)
    logger = configure_logging(stream=second)
    logging.getLogger("devmirror.core.mirror").info("Copied %d files to %s", 2, "out")

    assert len(logger.handlers) == 1
    assert first.getvalue() == ""
    assert second.getvalue() == "[devmirror] Copied 2 files to out\n"


def test_verbose_enables_debug_records() -> None:
    stream = io.StringIO()
    configure_logging(verbose=True, stream=stream)

    logging.getLogger("devmirror.core.watch_host").debug("GET /index.html")

    assert logging.getLogger(LOGGER_NAME).level == logging.DEBUG
    assert "DEBUG devmirror.core.watch_host: GET /index.html" in stream.getvalue()


def test_quiet_mode_drops_debug_records() -> None:
    stream = io.StringIO()
    configure_logging(stream=stream)

    logging.getLogger("devmirror.core.mirror").debug("Copied a to b")

    assert stream.getvalue() == ""
