"""Database configuration."""

import logging
import os
from pathlib import Path


class DatabaseConfig:
    """Database configuration settings."""

    # Default database path relative to the project root
    DEFAULT_DB_PATH = "workspace/eventaudit.db"
    DEFAULT_LOG_LEVEL = "WARNING"

    @classmethod
    def get_db_path(cls) -> Path:
        """Get database path from environment or default."""
        env_path = os.environ.get("EVENTAUDIT_DB_PATH")
        if env_path:
            return Path(env_path)

        project_root = Path(__file__).parent.parent
        return project_root / cls.DEFAULT_DB_PATH

    @classmethod
    def get_db_url(cls) -> str:
        """Get SQLAlchemy database URL.

        ``EVENTAUDIT_DB_URL`` wins over ``EVENTAUDIT_DB_PATH`` so that a
        non-SQLite backend can be selected without touching the path logic.
        """
        env_url = os.environ.get("EVENTAUDIT_DB_URL")
        if env_url:
            return env_url

        db_path = cls.get_db_path()
        # Ensure parent directory exists
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{db_path}"

    @classmethod
    def is_echo_enabled(cls) -> bool:
        """Check if SQL statements should be echoed to the log."""
        return os.environ.get("EVENTAUDIT_DB_ECHO", "0").lower() in ("1", "true", "yes")

    @classmethod
    def get_log_level(cls) -> int:
        """Get the logging level name from environment, as a ``logging`` constant."""
        name = os.environ.get("EVENTAUDIT_LOG_LEVEL", cls.DEFAULT_LOG_LEVEL).upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name}")
        return level
