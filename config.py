# config.py
import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_MODEL = "gemini-2.5-flash"
API_KEY_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


class PortfolioMatchError(Exception):
    """Base error for the application."""


class MissingCredentials(PortfolioMatchError):
    pass


class ImportFailed(PortfolioMatchError):
    pass


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    match_temperature: float = 0.1
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        api_key = None
        for var in API_KEY_VARS:
            value = os.getenv(var, "").strip()
            if value:
                api_key = value
                break
        return cls(
            api_key=api_key,
            model=os.getenv("GEMINI_MODEL", DEFAULT_MODEL).strip() or DEFAULT_MODEL,
            match_temperature=float(os.getenv("MATCH_TEMPERATURE", "0.1")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def require_api_key(self) -> str:
        if not self.api_key:
            raise MissingCredentials(
                "The Google Gemini API key is missing. Set GEMINI_API_KEY "
                "(or GOOGLE_API_KEY / API_KEY) in the environment or a .env file."
            )
        return self.api_key


def setup_logging(level: str = "INFO"):
    # basicConfig is a no-op after the first call, so Streamlit reruns are safe
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
