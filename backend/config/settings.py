"""
Configuration Management for the upgrade tooling
Centralizes all environment-based configuration and logging setup
"""

import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

ALLOWED_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _safe_int(env_var: str, default: int, min_val: int = None, max_val: int = None) -> int:
    """
    Safely parse an integer from environment variable with validation.

    Args:
        env_var: Environment variable name
        default: Default value if not set
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive)

    Returns:
        Parsed and validated integer

    Raises:
        ValueError: If value is not a valid integer or out of range
    """
    value_str = os.getenv(env_var)
    if value_str is None:
        return default

    try:
        value = int(value_str)
    except ValueError:
        raise ValueError(
            f"{env_var} must be a valid integer, got: '{value_str}'"
        )

    if min_val is not None and value < min_val:
        raise ValueError(
            f"{env_var} must be at least {min_val}, got: {value}"
        )

    if max_val is not None and value > max_val:
        raise ValueError(
            f"{env_var} must be at most {max_val}, got: {value}"
        )

    return value


def _env_bool(env_var: str, default: bool) -> bool:
    value = os.getenv(env_var)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def get_data_dir() -> str:
    return os.getenv('CLUSTER_UPGRADE_DATA_DIR', '/var/lib/cluster-upgrade')


def get_database_path() -> str:
    return os.getenv('CLUSTER_UPGRADE_DATABASE_PATH', os.path.join(get_data_dir(), 'server.db'))


def get_log_level() -> str:
    """Log level from CLUSTER_UPGRADE_LOG_LEVEL, falling back to INFO if invalid"""
    log_level_str = os.getenv('CLUSTER_UPGRADE_LOG_LEVEL', 'INFO').upper()
    if log_level_str not in ALLOWED_LOG_LEVELS:
        print(f"WARNING: Invalid CLUSTER_UPGRADE_LOG_LEVEL '{log_level_str}'. Using INFO. Valid values: {ALLOWED_LOG_LEVELS}")
        log_level_str = 'INFO'
    return log_level_str


def setup_logging(log_dir: str = None):
    """Configure logging to the console and a rotating file"""
    log_dir = log_dir or os.path.join(get_data_dir(), 'logs')
    os.makedirs(log_dir, mode=0o700, exist_ok=True)

    root_logger = logging.getLogger()

    # Close and clear any existing handlers (alembic's fileConfig installs its own)
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    log_level = getattr(logging, get_log_level())
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    console_handler.setFormatter(formatter)

    # Max 10MB per file, keep 5 backups
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, 'upgrade.log'),
        maxBytes=10*1024*1024,
        backupCount=_safe_int('CLUSTER_UPGRADE_LOG_BACKUPS', 5, min_val=0, max_val=100),
        encoding='utf-8'
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # SQL echo is far too verbose at INFO
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)


class UpgradeConfig:
    """Upgrade runner configuration"""

    DATABASE_PATH = get_database_path()

    # Copy the database file aside before running migrations
    BACKUP_ENABLED = _env_bool('CLUSTER_UPGRADE_BACKUP', True)

    # SQLite busy timeout (seconds)
    DB_TIMEOUT = _safe_int('CLUSTER_UPGRADE_DB_TIMEOUT', 30, min_val=1, max_val=3600)

    @classmethod
    def database_url(cls, db_path: Optional[str] = None) -> str:
        return f"sqlite:///{db_path or cls.DATABASE_PATH}"
