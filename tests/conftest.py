import logging

import pytest

from tinycpu.log import LOGGER_NAME


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo setup_logging() from CLI tests so caplog sees package records."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
