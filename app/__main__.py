import logging
import sys

import uvicorn

from app.app import CONFIG, app, configure_logging


logger = logging.getLogger("app")


def main() -> None:
    configure_logging(CONFIG.log_level)
    if not CONFIG.gemini_api_key:
        logger.error("GEMINI_API_KEY is not set in environment variables.")
        logger.error("Create a .env file next to where you run the server with:")
        logger.error("GEMINI_API_KEY=your_api_key_here")
        sys.exit(1)
    logger.info("Test the server at http://localhost:%d/api/test", CONFIG.port)
    uvicorn.run(app, host="0.0.0.0", port=CONFIG.port, log_config=None)


if __name__ == "__main__":
    main()
