"""FastAPI application for the Responses -> Messages bridge."""

import logging
from typing import Any, Mapping, Optional

from fastapi import FastAPI

from .api.routes import health, responses_endpoint
from .config_loader import load_config, resolve_log_level
from .core import Upstream, build_upstream
from .logging import setup_logging
from .responses.ids import IdGenerator

logger = logging.getLogger("responses-bridge")


def create_app(
    config: Optional[Mapping[str, Any]] = None,
    upstream: Optional[Upstream] = None,
    ids: Optional[IdGenerator] = None,
) -> FastAPI:
    """Create the bridge application.

    Args:
        config: Parsed configuration. Loaded from disk when omitted.
        upstream: Upstream override. Built from ``config`` when omitted.
        ids: Identifier source override, for deterministic ids in tests.
    """
    if config is None:
        config = load_config()
    setup_logging(resolve_log_level(config))

    if upstream is None:
        upstream = build_upstream(config)

    app = FastAPI(title="Responses Bridge")
    app.state.config = config
    app.state.upstream = upstream
    app.state.ids = ids

    app.add_api_route("/v1/responses", responses_endpoint, methods=["POST"])
    app.add_api_route("/health", health, methods=["GET"])

    logger.info("Bridge application created, upstream=%s", upstream.messages_url)
    return app
