import logging
import sys

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


def setup_logging(debug: bool = False):
    """Configure application logging."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CHATSTREAM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Credentials
    api_key: Optional[str] = None

    # Endpoint and default request parameters
    url: str = "https://api.openai.com/v1/chat/completions"
    model: str = "gpt-4o-mini"
    temperature: float = 1.0
    top_p: float = 1.0
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0
    max_tokens: int = 1024

    # Document insertion
    heading_level: int = 0
    set_at_cursor: bool = False

    # Timeout settings (seconds)
    provider_timeout: int = 60

    debug: bool = False

    @property
    def heading_prefix(self) -> str:
        """Markdown heading prefix placed before the assistant role marker."""
        if self.heading_level <= 0:
            return ""
        return "#" * self.heading_level + " "


settings = Settings()

# Initialize logging on import
setup_logging(settings.debug)
