"""
Main entrypoint: BlinkGuard API server.

Env: BLINKGUARD_REGISTRY_PATH or BLINKGUARD_REGISTRY_DATABASE_URL, API_HOST, API_PORT, LOG_LEVEL, etc.

Equivalent: uvicorn blinkguard.api_server.app:app --host 0.0.0.0 --port 3000
"""

# Configure structured JSON logging before other imports that may log
from blinkguard.guard_logging import configure_structlog, get_logger

logger = get_logger("main")


def main() -> None:
    """Run the FastAPI server in the main thread."""
    import uvicorn

    from blinkguard.api_server.app import create_app
    from blinkguard.config import get_settings

    settings = get_settings()
    configure_structlog(settings.log_level, settings.log_format)
    app = create_app(settings)
    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        registry="sql" if settings.uses_sql_registry else str(settings.registry_path),
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
