"""Entry point for running the API server: ``python -m storycast``."""

import uvicorn

from storycast.api.factory import configure_logging
from storycast.api.settings import get_settings

if __name__ == "__main__":
    settings = get_settings()
    configure_logging(settings)

    try:
        uvicorn.run(
            "storycast.api.main:app",
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
        )
    except KeyboardInterrupt:
        print("\nStorycast server shutdown gracefully")
