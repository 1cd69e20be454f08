import logging

import pytest


@pytest.fixture(autouse=True)
def reset_formstate_logging():
    """Drop handlers installed by log.setup so later tests don't write to closed streams."""
    yield
    logger = logging.getLogger("formstate")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
