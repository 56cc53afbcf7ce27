import os
import logging

from dotenv import load_dotenv

load_dotenv()

from endless_gateway import Settings, create_app  # noqa: E402

# Logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger("endless-gateway")

settings = Settings.from_env()
app = create_app(settings)

if __name__ == "__main__":
    logger.info("Endless Gateway API running on port %s (%d routes)", settings.port, len(settings.routes))
    app.run(host=settings.host, port=settings.port)
