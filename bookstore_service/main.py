"""Main entry point for the Bookstore Service."""

import uvicorn

from bookstore_service import config
from bookstore_service.server import app


def main():
    uvicorn.run(app, host=config.APP_HOST, port=config.APP_PORT)


if __name__ == "__main__":
    main()
