from __future__ import annotations

import logging

from magnetostaticanalysis.logging_config import setup_logging


def test_setup_logging_writes_file(tmp_path):
    log_file = tmp_path / "solver.log"
    setup_logging(level=logging.DEBUG, log_file=str(log_file))
    setup_logging(level=logging.DEBUG, log_file=str(log_file))

    logger = logging.getLogger("magnetostaticanalysis")
    assert len(logger.handlers) == 2
    logging.getLogger("magnetostaticanalysis.fea").debug("assembly started")

    for handler in logger.handlers:
        handler.flush()
    assert "magnetostaticanalysis.fea - DEBUG - assembly started" in log_file.read_text(encoding="utf-8")
