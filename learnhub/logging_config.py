import logging
import sys


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Set up application logging configuration
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    return logging.getLogger("learnhub")
