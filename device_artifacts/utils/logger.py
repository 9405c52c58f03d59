import logging
from rich.logging import RichHandler


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger


def log_error(logger: logging.Logger, error: BaseException, scope: str) -> None:
    """Log an exception with its traceback under a scope label."""
    logger.error(f"[{scope}] {type(error).__name__}: {error}", exc_info=error)
