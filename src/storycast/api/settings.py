import logging
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

DEFAULT_ALLOWED_ORIGINS = "http://localhost:5173,http://localhost:3000"


class Settings(BaseSettings):
    """Application settings loaded from environment variables or `.env` file."""

    env: Literal["dev", "docker", "production"] = Field(
        default="dev",
        description="Runtime environment: dev (local), docker (docker-compose), or production",
    )
    log_level: str = Field(default="INFO", description="Logging level")

    # Upstream credentials
    gemini_api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY")
    )
    eleven_labs_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "ELEVENLABS_API_KEY", "ELEVEN_LABS_API_KEY", "ELEVEN_API_KEY"
        ),
    )
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")

    # Text generation
    text_model: str = Field(default="gemini-2.0-flash", alias="GEMINI_TEXT_MODEL")
    vision_model: str = Field(default="gemini-2.0-flash", alias="GEMINI_VISION_MODEL")
    generation_timeout_seconds: float = Field(default=30.0, gt=0)

    # Speech synthesis
    tts_provider: Literal["elevenlabs", "openai"] = Field(
        default="elevenlabs", alias="TTS_PROVIDER"
    )
    elevenlabs_voice_id: str = Field(default="jUjRbhZWoMK4aDciW36V", alias="ELEVENLABS_VOICE_ID")
    elevenlabs_model_id: str = Field(default="eleven_multilingual_v2", alias="ELEVENLABS_MODEL_ID")
    openai_voice: str = Field(default="alloy", alias="OPENAI_TTS_VOICE")
    synthesis_timeout_seconds: float = Field(default=60.0, gt=0)

    # HTTP
    frontend_url: str | None = Field(default=None, alias="FRONTEND_URL")
    allowed_origins: str = Field(
        default=DEFAULT_ALLOWED_ORIGINS,
        alias="ALLOWED_ORIGINS",
        description="Comma separated list of origins allowed to call the API ('*' allows any)",
    )
    max_body_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=4040, alias="PORT")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
        "extra": "ignore",
    }

    @property
    def origin_allow_list(self) -> list[str]:
        """Configured origins plus FRONTEND_URL, without blanks or duplicates."""
        origins = [o.strip() for o in self.allowed_origins.split(",")]
        if self.frontend_url:
            origins.insert(0, self.frontend_url.strip())
        return list(dict.fromkeys(o for o in origins if o))

    @property
    def default_voice_id(self) -> str:
        if self.tts_provider == "openai":
            return self.openai_voice
        return self.elevenlabs_voice_id

    @property
    def expose_error_details(self) -> bool:
        return self.env == "dev"


@lru_cache
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached instance of Settings."""
    s = Settings()
    logging.basicConfig(level=s.log_level)
    logger = logging.getLogger(__name__)

    logger.info("=" * 60)
    logger.info(f"Starting Storycast in {s.env.upper()} environment")
    logger.info("=" * 60)
    logger.info(f"Text model: {s.text_model} | Vision model: {s.vision_model}")
    logger.info(f"TTS Provider: {s.tts_provider} | Default voice: {s.default_voice_id}")
    logger.info(f"Allowed origins: {', '.join(s.origin_allow_list) or '<none>'}")
    logger.info("=" * 60)

    if s.env == "production":
        if not s.gemini_api_key:
            logger.warning("GEMINI_API_KEY not set in production - story generation will fail!")
        if s.tts_provider == "elevenlabs" and not s.eleven_labs_api_key:
            logger.warning("ELEVENLABS_API_KEY not set in production - voice generation will fail!")
        if s.tts_provider == "openai" and not s.openai_api_key:
            logger.warning("OPENAI_API_KEY not set in production - voice generation will fail!")
        if "*" in s.origin_allow_list:
            logger.warning("ALLOWED_ORIGINS contains '*' in production - any origin is accepted!")

    return s
