import logging

from pythonjsonlogger import jsonlogger


def setup_logger(level: str = 'INFO', json: bool = True) -> None:
    """Send log records from the ``identity`` package to stderr."""
    logHandler = logging.StreamHandler()
    if json:
        formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(levelname)s %(name)s %(message)s',
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s %(levelname)s %(name)s: %(message)s'
        )
    logHandler.setFormatter(formatter)
    logger = logging.getLogger('identity')
    for handler in list(logger.handlers):
        if getattr(handler, '_identity_handler', False):
            logger.removeHandler(handler)
    logHandler._identity_handler = True     # type: ignore
    logger.addHandler(logHandler)
    logger.setLevel(level.upper())
