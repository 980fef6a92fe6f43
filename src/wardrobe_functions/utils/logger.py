import logging
import os

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _running_in_lambda() -> bool:
    return bool(os.environ.get("AWS_LAMBDA_FUNCTION_NAME"))


def get_logger(name: str = None) -> logging.Logger:
    """
    Logger for a wardrobe_functions module.

    Inside Lambda the runtime's root handler already ships records to
    CloudWatch with the request id, so records propagate there. Locally
    (tests, local_test.py) a stream handler with LOG_FORMAT is attached.
    The level comes from LOG_LEVEL, default INFO.
    """
    log = logging.getLogger(name)
    log.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())

    if _running_in_lambda():
        log.propagate = True
        return log

    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
        log.propagate = False
    return log
