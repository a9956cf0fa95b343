# tests/core/test_logging_and_loop.py
import asyncio
import logging

import pytest

from canvas_a11y.core import loop_runner
from canvas_a11y.core.utils.configure_logging import LogWithTqdm, configure_logger


@pytest.fixture
def restore_root_logger():
    """Bewaart de root-logger configuratie en zet die na de test terug."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logger_installs_tqdm_handler(restore_root_logger):
    configure_logger("ERROR", {"detector": "DEBUG"}, {"asyncio": "CRITICAL"})

    root = restore_root_logger
    assert root.level == logging.ERROR
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0], LogWithTqdm)
    assert logging.getLogger("detector").level == logging.DEBUG
    assert logging.getLogger("asyncio").level == logging.CRITICAL


def test_unknown_level_name_falls_back(restore_root_logger):
    configure_logger("LOUD")
    assert restore_root_logger.level == logging.INFO


def test_log_lines_go_through_tqdm_write(restore_root_logger, capsys):
    configure_logger("INFO")
    logging.getLogger("detector.test").warning("Scan finished: 0 issues")
    assert "Scan finished: 0 issues" in capsys.readouterr().err


async def _answer():
    await asyncio.sleep(0)
    return 42


def test_run_on_main_loop_without_background_loop():
    """Zonder achtergrond-loop valt run_on_main_loop terug op asyncio.run()."""
    assert loop_runner.run_on_main_loop(_answer()) == 42


def test_background_loop_lifecycle():
    loop_runner.ensure_background_loop()
    try:
        assert loop_runner.run_on_main_loop(_answer(), timeout=5) == 42
    finally:
        loop_runner.shutdown_background_loop()
    assert loop_runner._MAIN_LOOP is None
    # Nogmaals stoppen is onschadelijk.
    loop_runner.shutdown_background_loop()
