"""
HUMAN logging level -- readable trace of what the engine changed.

Custom level between INFO (20) and WARNING (30). It does not indicate
severity; it marks the handful of events a user cares about (a note was
written, a file was renamed, the index was rebuilt) as opposed to the
technical detail logged at INFO/DEBUG.

Hierarchy:
    debug  (10) -> raw store calls, index/session bookkeeping
    info   (20) -> config loaded, index rebuilt, session pruned
    human  (25) -> what changed in the workspace
    warn   (30) -> recoverable problems (corrupt index, unreadable note)
    error  (40) -> failed operations
"""

import logging

import structlog

HUMAN = 25
logging.addLevelName(HUMAN, "HUMAN")


def _human_method(self, message, *args, **kwargs):
    if self.isEnabledFor(HUMAN):
        self._log(HUMAN, message, args, **kwargs)


# Lets stdlib loggers call .human() like any other level
logging.Logger.human = _human_method

# structlog needs the name to render records at this level
try:
    structlog.stdlib.LEVEL_TO_NAME[HUMAN] = "human"
except (AttributeError, KeyError):
    pass

# HumanLog also runs before configure_logging(); the default PrintLogger
# only has the stock level methods
if not hasattr(structlog.PrintLogger, "human"):
    structlog.PrintLogger.human = structlog.PrintLogger.msg
