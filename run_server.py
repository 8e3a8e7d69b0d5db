import os

import uvicorn

from skycast.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


def check_api_key() -> bool:
    """
    Warn early when the provider credential is missing. The proxy still starts,
    but every /api/weather call will answer 500 until WEATHER_API_KEY is set.
    """
    if settings.api_key:
        logger.info("WeatherAPI credential loaded from environment")
        return True
    logger.warning("WEATHER_API_KEY is not set; /api/weather will return 500 'Missing API key'")
    return False


if __name__ == "__main__":
    setup_logging(level=os.getenv("LOG_LEVEL", "INFO"), job_name="skycast")
    check_api_key()

    uvicorn.run(
        "skycast.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
