import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"


class ConfigError(Exception):
    """Fatal configuration problem. Aborts the run."""


@dataclass
class LLMConfig:
    provider: str = "gemini"
    model: str = "gemini-2.0-flash"
    openai_model: str = "gpt-4o-mini"


@dataclass
class EmailConfig:
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587


@dataclass
class RSSSources:
    hn: List[str] = field(default_factory=list)
    x: List[str] = field(default_factory=list)
    custom: List[str] = field(default_factory=list)


@dataclass
class Config:
    period: str = "24h"
    articles_per_category: int = 5
    categories: Dict[str, List[str]] = field(default_factory=dict)
    rss_sources: RSSSources = field(default_factory=RSSSources)
    llm: LLMConfig = field(default_factory=LLMConfig)
    email: EmailConfig = field(default_factory=EmailConfig)
    output_dir: str = "."


@dataclass
class Secrets:
    gemini_api_key: str = ""
    openai_api_key: str = ""
    email_to: str = ""
    email_from: str = ""
    email_password: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load the run configuration from a YAML file.

    Raises ConfigError when the file is missing or is not a mapping;
    there is no sensible default for a broken config.
    """
    path = Path(config_path or DEFAULT_CONFIG_PATH)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")

    logger.info(f"Loaded config from {path}")
    return parse_config(data)


def parse_config(data: dict) -> Config:
    """Build a Config from an already-parsed document."""
    rss = data.get("rss_sources") or {}
    llm = data.get("llm") or {}
    email = data.get("email") or {}
    categories = data.get("categories") or {}

    if not isinstance(categories, dict):
        raise ConfigError("'categories' must map category names to keyword lists")

    try:
        articles_per_category = int(data.get("articles_per_category", 5))
        smtp_port = int(email.get("smtp_port", 587))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric value in config: {e}") from e

    return Config(
        period=str(data.get("period", "24h")),
        articles_per_category=articles_per_category,
        categories={name: list(words or []) for name, words in categories.items()},
        rss_sources=RSSSources(
            hn=list(rss.get("hn") or []),
            x=list(rss.get("x") or []),
            custom=list(rss.get("custom") or []),
        ),
        llm=LLMConfig(
            provider=llm.get("provider", "gemini"),
            model=llm.get("model") or "gemini-2.0-flash",
            openai_model=llm.get("openai_model") or "gpt-4o-mini",
        ),
        email=EmailConfig(
            smtp_host=email.get("smtp_host", "smtp.gmail.com"),
            smtp_port=smtp_port,
        ),
        output_dir=str(data.get("output_dir", ".")),
    )


def load_secrets(email: Optional[EmailConfig] = None) -> Secrets:
    """
    Read credentials from the environment (call load_dotenv() first).
    SMTP host and port fall back to the config file values.
    """
    email = email or EmailConfig()
    try:
        smtp_port = int(os.getenv("SMTP_PORT", str(email.smtp_port)))
    except ValueError as e:
        raise ConfigError(f"Invalid SMTP_PORT: {e}") from e

    return Secrets(
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        email_to=os.getenv("EMAIL_TO", ""),
        email_from=os.getenv("EMAIL_FROM", ""),
        email_password=os.getenv("EMAIL_PASSWORD", ""),
        smtp_host=os.getenv("SMTP_HOST", email.smtp_host),
        smtp_port=smtp_port,
    )
