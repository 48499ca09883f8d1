"""Long-running server app serving every route."""

from .factory import configure_logging, create_app
from .settings import get_settings

settings = get_settings()
configure_logging(settings)

app = create_app(settings)
