"""
Allow the nanonft package to be executed as a module.

This runs the API server with:
    python -m nanonft
    python -m nanonft --host 127.0.0.1 --port 9000
"""

import argparse
import logging

import uvicorn

from nanonft.api_server import create_app
from nanonft.config import settings
from nanonft.utils.logging_config import init_logging

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the NanoNFT API server")
    parser.add_argument("--host", default=settings.api_host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.api_port, help="Port to listen on")
    args = parser.parse_args()

    init_logging()
    app = create_app(settings)
    logger.info(f"NanoNFT API starting on http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
