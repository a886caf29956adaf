"""Uvicorn server runner with custom configuration."""

import copy
from typing import Any

import structlog
import uvicorn
from uvicorn.config import LOGGING_CONFIG

from aiprofessor.app import App
from aiprofessor.config import Config
from aiprofessor.web.middleware import PRODUCTION_PROFILE
from aiprofessor.web.server import create_fastapi_app

logger = structlog.get_logger(__name__)

ACCESS_LOG_FORMAT = '%(asctime)s - %(client_addr)s - "%(request_line)s" %(status_code)s'
DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def build_log_config() -> dict[str, Any]:
    """Uvicorn logging config with the access line carrying the client address used by the session policy."""
    log_config = copy.deepcopy(LOGGING_CONFIG)
    log_config["formatters"]["access"]["fmt"] = ACCESS_LOG_FORMAT
    log_config["formatters"]["default"]["fmt"] = DEFAULT_LOG_FORMAT
    return log_config


def run_server(app: App, config: Config) -> None:
    """Run the Uvicorn server with custom logging configuration."""
    fastapi_app = create_fastapi_app(app, config)
    logger.info(
        "server_starting",
        host=config.host,
        port=config.port,
        profile=config.profile,
        desktop_client_gate=config.profile == PRODUCTION_PROFILE,
    )
    uvicorn.run(fastapi_app, host=config.host, port=config.port, log_config=build_log_config(), access_log=True)
