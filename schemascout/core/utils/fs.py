import os
import logging

logger = logging.getLogger(__name__)


def create_file_if_missing(path: str, content: str) -> bool:
    """Creates a file with content if it doesn't already exist."""
    if not os.path.exists(path):
        with open(path, 'w') as f:
            f.write(content)
        logger.info(f"Created file: {path}")
        return True
    return False


def write_json_output(path: str, text: str) -> None:
    """Writes output text, creating parent directories as needed."""
    directory = os.path.dirname(path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory)
        logger.info(f"Created directory: {directory}")
    with open(path, 'w') as f:
        f.write(text)
    logger.info(f"Wrote {path}")
