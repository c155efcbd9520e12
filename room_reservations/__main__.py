from __future__ import annotations

import logging

from .config import configure_logging, load_config
from .web_app import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    config = load_config()
    configure_logging(config.log_level)
    app = create_app(config)
    logger.info("Server listening on %s:%s (rooms: %s)", config.host, config.port, ", ".join(config.rooms))
    app.run(host=config.host, port=config.port)


if __name__ == "__main__":
    main()
