"""Command-line entry point: ``freelance-match`` / ``python -m app.main``."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

import uvicorn

from app.api import create_app
from app.config.environment import EnvironmentConfig
from app.config.exceptions import ConfigurationError
from app.config.loader import load_config, validate_config_file
from app.config.models import AppConfig
from app.logging import get_logger
from app.logging.config import DEFAULT_SERVICE_NAME, configure_logging
from app.persistence.database import close_database, init_database
from app.ranking.skills import SkillOverlapRanker

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """Load settings and settle the effective log level.

    The level comes from the command line, else LOG_LEVEL, else the config
    file's ``logging.level``, else INFO. The result is stored on the
    returned EnvironmentConfig.
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        configured = app_config.logging.level if app_config.logging else None
        env_config.log_level = str(getattr(configured, "value", configured)) if configured else "INFO"

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Freelance Match - mutual-consent matching between projects and freelancers"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument("--host", default=None, help="Bind address (overrides api.host)")
    parser.add_argument("--port", type=int, default=None, help="Port (overrides api.port)")
    parser.add_argument(
        "--init-only",
        action="store_true",
        help="Create the database schema and exit",
    )
    parser.add_argument(
        "--check-config",
        type=Path,
        metavar="FILE",
        default=None,
        help="Validate a configuration file and exit",
    )
    return parser


def main(argv=None) -> int:
    """Run the HTTP service until interrupted.

    Returns 0 on a clean shutdown and 1 on configuration or startup errors.
    """
    started = time.time()
    args = build_parser().parse_args(argv)

    if args.check_config is not None:
        return 0 if validate_config_file(args.check_config) else 1

    try:
        # Settings first: the log format depends on them
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        log_format = app_config.logging.format if app_config.logging else "key-value"
        configure_logging(
            level=env_config.log_level,
            format_type=log_format,
            environment=env_config.environment,
            service=app_config.service_name or DEFAULT_SERVICE_NAME,
        )
        logger.info(
            "Freelance Match starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "init_only": args.init_only,
            },
        )

        init_database(env_config.database_url)

        if args.init_only:
            logger.info("Schema created, exiting", extra={"event": "service.init_only.completed"})
            close_database()
            return 0

        host = args.host or app_config.api.host
        port = args.port or app_config.api.port
        app = create_app(app_config, ranker=SkillOverlapRanker(app_config.ranking))

        logger.info(
            f"Listening on http://{host}:{port}",
            extra={
                "event": "service.serving",
                "host": host,
                "port": port,
                "max_candidates": app_config.ranking.max_candidates,
                "log_format": str(log_format),
            },
        )

        # Blocks until SIGINT/SIGTERM
        uvicorn.run(app, host=host, port=port, log_config=None)

        close_database()
        logger.info(
            "Freelance Match stopped",
            extra={
                "event": "service.stopping",
                "uptime_seconds": round(time.time() - started, 2),
            },
        )
        return 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        close_database()
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Service failed to start",
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        close_database()
        return 1


if __name__ == "__main__":
    sys.exit(main())
