"""Run the API with uvicorn: ``python -m harvesters_hub``."""

import logging

import uvicorn

from harvesters_hub.app import create_app
from harvesters_hub.config import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
