"""Main entry point for service C (responder)."""

import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from tracelink import Application, ServiceConfig
from tracelink.api import create_fastapi_app
from tracelink.errors import StartupError
from tracelink.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def main():
    """Run service C: the responder route plus the debug endpoints."""
    project_root = Path(__file__).resolve().parent.parent.parent
    load_dotenv(project_root / ".env")

    config = ServiceConfig.from_env(
        prefix="SVCC_",
        service_name="service-c",
        app_label="svcc",
    )
    setup_logging(
        config.log_level,
        config.effective_log_file,
        service=config.service_name,
        log_format=config.log_format,
    )

    try:
        application = Application(config)
    except StartupError as e:
        logger.critical("%s", e)
        sys.exit(1)

    app = create_fastapi_app(application, serve_responder=True)

    uvicorn.run(
        app,
        host=config.listen_host,
        port=config.listen_port,
        log_level=config.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
