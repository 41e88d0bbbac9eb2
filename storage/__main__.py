"""
Storage service launcher: python -m storage [--host HOST] [--port PORT]
"""
import argparse

import uvicorn

from shared.logging_config import setup_logging
from storage import config


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Hubfly storage service")
    parser.add_argument("--host", default=config.BIND_HOST)
    parser.add_argument("--port", type=int, default=config.API_PORT)
    args = parser.parse_args()

    logger = setup_logging("storage", level=config.LOG_LEVEL, log_file=config.LOG_FILE)

    # startup_init validates these
    config.BIND_HOST = args.host
    config.API_PORT = args.port

    logger.info(f"Server running on {args.host}:{args.port}")
    logger.info(f"Volume base directory: {config.VOLUME_BASE_DIR}")

    uvicorn.run("storage.service:app", host=args.host, port=args.port, reload=False, log_config=None)


if __name__ == "__main__":
    main()
