"""Run the gateway under uvicorn."""
from __future__ import annotations
import argparse
import logging

import uvicorn

from gemini_gateway.common.config import load_settings
from gemini_gateway.common.logging_setup import setup_logging
from gemini_gateway.serve.app import create_app

LOGGER = logging.getLogger("gemini_gateway.server")

def main() -> None:
    ap = argparse.ArgumentParser(description="Gemini prompt gateway")
    ap.add_argument("--config", default=None, help="YAML settings file (default: $GATEWAY_CONFIG or configs/gateway.yaml)")
    ap.add_argument("--host", default=None, help="Bind address (overrides settings)")
    ap.add_argument("--port", type=int, default=None, help="Port (overrides settings)")
    ap.add_argument("--log-level", default=None, help="Logging level (overrides settings)")
    args = ap.parse_args()

    settings = load_settings(args.config)
    overrides = {
        k: v
        for k, v in {"host": args.host, "port": args.port, "log_level": args.log_level}.items()
        if v is not None
    }
    if overrides:
        settings = settings.model_copy(update=overrides)

    setup_logging(settings.log_level)
    app = create_app(settings)
    LOGGER.info("Serving on %s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)

if __name__ == "__main__":
    main()
