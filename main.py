"""
Main entrypoint: run the WalletRisk FastAPI server.

Env: ETHERSCAN_API_KEY, WALLETRISK_NETWORK, WALLETRISK_LISTS_DIR,
WALLETRISK_WEIGHTS_PATH, API_HOST, API_PORT, LOG_LEVEL, LOG_FORMAT.

Equivalent: uvicorn backend_walletrisk.api_server.app:app --host 0.0.0.0 --port 8000
"""

import argparse
import os

# Configure structured JSON logging before other imports that may log
from backend_walletrisk.walletrisk_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Load settings, then serve the API in the main thread."""
    from backend_walletrisk.config.settings import get_settings

    settings = get_settings()
    parser = argparse.ArgumentParser(description="WalletRisk scoring API")
    parser.add_argument("--host", default=settings.api_host)
    parser.add_argument("--port", type=int, default=settings.api_port)
    args = parser.parse_args()

    from backend_walletrisk.api_server.app import app
    import uvicorn

    logger.info(
        "main_server_starting",
        host=args.host,
        port=args.port,
        network=settings.default_network,
        lists_dir=str(settings.lists_dir),
    )
    uvicorn.run(app, host=args.host, port=args.port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
