import logging

from dots_tangle.errors import ConfigError

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"


class IndicatorHandler(logging.Handler):
    """Writes log lines through the indicator so they never split the status line.

    With `discardWhileAnimating`, anything below WARNING is dropped while the
    spinner occupies the display.
    """

    def __init__(self, indicator, discardWhileAnimating=False):
        super().__init__()
        self.indicator = indicator
        self.discardWhileAnimating = discardWhileAnimating

    def emit(self, record):
        if self.discardWhileAnimating and record.levelno < logging.WARNING and self.indicator.occupiesDisplay:
            return
        try:
            self.indicator.plain(self.format(record))
        except Exception:
            self.handleError(record)


def setupLogging(logfile, verbose, indicator):
    logger = logging.getLogger("dots_tangle")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    if logfile == "-":
        handler = IndicatorHandler(indicator)
    elif logfile:
        try:
            handler = logging.FileHandler(logfile)
        except OSError as e:
            raise ConfigError(f"Cannot open log file '{logfile}': {e}") from e
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = IndicatorHandler(indicator, discardWhileAnimating=True)
    logger.addHandler(handler)
    return logger
