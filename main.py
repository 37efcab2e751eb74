"""
Command-line entry point: load .env, open the profile store, serve the API.
"""
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

from core.config import get_settings
from core.db import get_db
from core.exceptions import ConfigurationError, StorageError
from core.logger import configure_root_logger, setup_logger

logger = setup_logger(__name__)


def load_environment() -> bool:
    """Load PROJECT_ROOT/.env into the process environment if present."""
    env_file = PROJECT_ROOT / ".env"
    if not env_file.exists():
        return False
    load_dotenv(env_file)
    return True


def main():
    """Start the HTTP service."""
    found_env = load_environment()
    try:
        settings = get_settings()
        configure_root_logger(settings.log_level)
        if not found_env:
            logger.warning(".env file not found, using environment variables and defaults")

        db = get_db()
        profile_count = len(db.list_profiles())

        import uvicorn
        from app.api import app

        logger.info(
            f"{settings.app_name}: {profile_count} profiles in {db.db_path}, "
            f"sessions {settings.session_gap_minutes}/{settings.session_padding_minutes} min"
        )
        logger.info(f"Listening on {settings.host}:{settings.port}")

        uvicorn.run(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower()
        )

    except (ConfigurationError, StorageError) as e:
        logger.error(f"Cannot start: {e.message} {e.details or ''}")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Unexpected startup failure: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
