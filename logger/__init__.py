import logging
import os
import sys

from settings import LOG_FILE, LOG_LEVEL


class CustomExtraLogAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        my_context = kwargs.pop("extra", None)
        if my_context is None:
            # request id of the current api call, when there is one
            from context_manager.context import get_request_id

            my_context = get_request_id()
        return "[%s] %s" % (my_context, msg), kwargs


def get_logger(name, level=LOG_LEVEL) -> logging.Logger:

    FORMAT = "[%(levelname)s  %(name)s %(module)s:%(lineno)s - %(funcName)s() - %(asctime)s]\n\t %(message)s \n"
    TIME_FORMAT = "%d.%m.%Y %I:%M:%S %p"

    log_dir = os.path.dirname(LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logging.basicConfig(
        format=FORMAT, datefmt=TIME_FORMAT, level=level, filename=LOG_FILE
    )

    logger_instance = logging.getLogger(name)

    if not logger_instance.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        logger_instance.addHandler(handler)

    logger_instance = CustomExtraLogAdapter(logger_instance, {"extra": None})

    return logger_instance


logger = get_logger(__name__)
