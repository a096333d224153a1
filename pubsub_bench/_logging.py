# =============================================================================
# pubsub-bench -- Logging
# =============================================================================

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

logger = logging.getLogger("pubsub_bench")


def configure_logging(*, quiet: bool = False, verbose: bool = False) -> None:
    """Attach a stderr handler to the ``pubsub_bench`` logger hierarchy.

    ``quiet`` keeps warnings and errors only, ``verbose`` enables debug
    output (per-frame decode details, transport internals).
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
