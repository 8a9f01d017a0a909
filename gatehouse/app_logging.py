import logging
from pythonjsonlogger import jsonlogger


def setup_logger(level='INFO', json_format=False):
    logHandler = logging.StreamHandler()
    if json_format:
        formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(levelname)s %(name)s %(message)s',
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'})
    else:
        formatter = logging.Formatter(
            '%(asctime)s %(levelname)s %(name)s: %(message)s')
    logHandler.setFormatter(formatter)
    logger = logging.getLogger()
    for handler in list(logger.handlers):
        if getattr(handler, '_gatehouse', False):
            logger.removeHandler(handler)
    logHandler._gatehouse = True
    logger.addHandler(logHandler)
    logger.setLevel(level)
