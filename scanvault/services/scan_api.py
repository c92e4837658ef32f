"""Serve the local scan API."""

from __future__ import annotations

import logging
from typing import Sequence

import uvicorn

from ..api.app import get_app
from ..config import settings as config_settings

logger = logging.getLogger(__name__)

SERVICE_NAME = "scan_api"


def main(argv: Sequence[str] | None = None) -> None:
    cfg = config_settings.get_settings()
    port = cfg.service_ports.get(SERVICE_NAME, None)
    logger.info(
        "%s starting on %s:%s (data_dir=%s probe=%s)",
        SERVICE_NAME,
        cfg.api_host,
        port,
        cfg.data_dir,
        cfg.probe_url,
    )
    app = get_app()
    uvicorn.run(app, host=cfg.api_host, port=port or 8040, log_level="info")
