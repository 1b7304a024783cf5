"""
Production entrypoint for the matching service.

Binds to 0.0.0.0:$PORT.
"""

import logging
import os

import uvicorn

from utils.config import Config
from utils.logging import setup_logging

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    config = Config.load()
    setup_logging(config.log_level, config.log_format)

    port = int(os.getenv("PORT", "8000"))
    logger.info("Starting matching service on port %d", port)

    # Import app here to ensure clean module loading
    from web.app import app

    uvicorn.run(app, host="0.0.0.0", port=port, log_config=None)
