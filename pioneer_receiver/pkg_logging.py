# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Package-wide logger, and support for routing log output to a custom sink.
"""

from __future__ import annotations

import logging

from .internal_types import *

logger = logging.getLogger("pioneer_receiver")
"""The logger used by all modules in this package."""

class CallbackLogHandler(logging.Handler):
    """A logging.Handler that passes each formatted record to a callable.

    Allows callers to supply a simple `debug_log(msg)` function in place of
    configuring the logging module.
    """

    sink: LogSink

    def __init__(self, sink: LogSink, level: int=logging.NOTSET) -> None:
        super().__init__(level=level)
        self.sink = sink

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.sink(self.format(record))
        except Exception:
            self.handleError(record)

def get_child_logger(name: str, sink: Optional[LogSink]=None) -> logging.Logger:
    """Returns a child of the package logger, optionally routed to a custom sink.

    When a sink is provided, the child logger is set to DEBUG level so that all
    messages reach the sink, regardless of the level of the package logger. The
    sink replaces the application's handlers; records are not propagated to
    ancestor loggers.
    """
    child = logger.getChild(name)
    if sink is not None:
        for handler in list(child.handlers):
            if isinstance(handler, CallbackLogHandler):
                child.removeHandler(handler)
        child.addHandler(CallbackLogHandler(sink))
        child.setLevel(logging.DEBUG)
        child.propagate = False
    return child

def release_child_logger(child: logging.Logger) -> None:
    """Detaches the sink from a logger returned by get_child_logger, and forgets the logger.

    The logger object remains usable; later records propagate normally.
    """
    for handler in list(child.handlers):
        if isinstance(handler, CallbackLogHandler):
            child.removeHandler(handler)
            handler.close()
    child.setLevel(logging.NOTSET)
    child.propagate = True
    logging.Logger.manager.loggerDict.pop(child.name, None)
