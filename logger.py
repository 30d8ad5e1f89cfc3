import logging
import os
from logging.handlers import RotatingFileHandler

LOG_FILE = 'quizbot.log'


def setup_logging():
    log_formatter = logging.Formatter('%(asctime)s:%(levelname)s:%(name)s: %(message)s')
    level = logging.getLevelName(os.getenv('LOG_LEVEL', 'INFO').upper())
    if not isinstance(level, int):
        level = logging.INFO

    # File Handler
    file_handler = RotatingFileHandler(LOG_FILE, maxBytes=5*1024*1024, backupCount=2)
    file_handler.setFormatter(log_formatter)
    file_handler.setLevel(level)

    # Stream Handler
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(log_formatter)
    stream_handler.setLevel(level)

    # Root Logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(stream_handler)

    # discord.py is chatty at DEBUG
    logging.getLogger('discord').setLevel(max(level, logging.INFO))
