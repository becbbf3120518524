import logging
import os

LOG_DIR = "logs"


def set_logger(name, log_file, log_dir=LOG_DIR):
    """Set up the logger with the given name and log file."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)  # Capture all levels

    log_path = os.path.join(log_dir, log_file)

    # already configured for this file, don't stack handlers
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == os.path.abspath(log_path):
            return logger

    # Create logs directory if it doesn't exist
    os.makedirs(log_dir, exist_ok=True)

    # mode "w" clears the file for each run
    fh = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    fh.setLevel(logging.DEBUG)

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
    fh.setFormatter(formatter)

    logger.addHandler(fh)

    return logger
