"""POST /api/generate-voice as an independent function."""

from storycast.api.factory import configure_logging, create_function_app
from storycast.api.settings import get_settings

configure_logging(get_settings())

app = create_function_app("/api/generate-voice")
