import logging
import os

LOGGER_NAME = "vault_analytics"
LOG_FILE_NAME = "analytics.log"


def get_analytics_logger() -> logging.Logger:
    """
    Returns the configured engine logger.
    Logs to <VAULT_ANALYTICS_LOG_DIR or logs>/analytics.log, flushed per record.
    Child loggers ("vault_analytics.*") share its handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)

    log_dir = os.environ.get("VAULT_ANALYTICS_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)

    file_handler = logging.FileHandler(os.path.join(log_dir, LOG_FILE_NAME), mode='a', encoding='utf-8')
    file_handler.setLevel(logging.INFO)

    formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S')
    file_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.propagate = False # Do not propagate to root logger (avoid stdout)

    return logger


def log_event(component: str, message: str, level: str = "info"):
    """
    Helper to log an event in a consistent format.
    Components: APY, Totals, VaultAnalytics, RiskMetrics, ...
    """
    logger = get_analytics_logger()
    log_fn = getattr(logger, level, logger.info)
    log_fn(f"[{component}] {message}")
