import argparse
import logging

import uvicorn

from .core.config import LOG_FORMAT, load_settings


def main():
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Run the alert queue API server.")
    parser.add_argument("--host", default=settings.host, help="Interface to bind (default: %(default)s)")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on (default: %(default)s)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, handlers=[logging.StreamHandler()])
    uvicorn.run("alertqueue.api.main:app", host=args.host, port=args.port, reload=args.reload, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
