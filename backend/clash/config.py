"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from clash.services.market.config import MarketDataConfig

logger = logging.getLogger(__name__)


class BattleConfig(BaseModel):
    """Token battle parameters."""

    starting_balance: float = 1000.0
    recency_window_minutes: int = 5
    min_market_cap: float = 10000.0  # Tokens at or below this are untracked
    min_candidates: int = 2
    chain: str = "solana"

    # Confidence = floor(base + random * spread)
    opus_confidence_base: int = 60
    opus_confidence_spread: int = 30
    codex_confidence_base: int = 55
    codex_confidence_spread: int = 35


class PredictionConfig(BaseModel):
    """Daily prediction parameters."""

    resolution_window_hours: int = 24
    contrarian_probability: float = 0.30
    min_variance_pct: float = 0.01
    max_variance_pct: float = 0.04
    max_confidence: int = 95


class SchedulerConfig(BaseModel):
    """Job scheduling intervals in minutes, plus the daily resolution time (UTC)."""

    battle_cycle_minutes: int = 2
    price_update_minutes: int = 3
    round_close_minutes: int = 5
    resolution_hour_utc: int = 23
    resolution_minute_utc: int = 59


class Settings(BaseSettings):
    """Main configuration class."""

    # Paths
    data_dir: Path = Path("data")

    # Storage
    database_url: str = "sqlite+aiosqlite:///data/clash.db"
    database_echo: bool = False

    # Observability
    logfire_token: str = ""

    # Seed for the shared random source; unset means nondeterministic
    random_seed: int | None = None

    # Nested configuration sections
    battle: BattleConfig = Field(default_factory=BattleConfig)
    predictions: PredictionConfig = Field(default_factory=PredictionConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    market: MarketDataConfig = Field(default_factory=MarketDataConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("data_dir", mode="after")
    @classmethod
    def resolve_data_dir(cls, v: Path) -> Path:
        """Resolve data directory to absolute path."""
        return v.resolve()

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def load_yaml_config(self) -> None:
        """Load and merge YAML configuration."""
        config_path = self.data_dir / "config.yaml"

        if not config_path.exists():
            logger.warning(
                f"Config file not found: {config_path}. "
                "Using defaults. Run 'python -m clash init' to create it."
            )
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)

            if not yaml_config:
                logger.warning(f"Empty config file: {config_path}")
                return

            for section_name in ["battle", "predictions", "scheduler", "market"]:
                if section_name in yaml_config:
                    section = getattr(self, section_name)
                    yaml_section = yaml_config[section_name] or {}

                    section_dict = section.model_dump()
                    section_dict.update(yaml_section)

                    new_section = section.__class__(**section_dict)
                    setattr(self, section_name, new_section)

            logger.info(f"Loaded configuration from {config_path}")

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to load config: {e}")
            raise


@lru_cache()
def get_settings() -> Settings:
    """Get singleton Settings instance."""
    settings = Settings()
    settings.load_yaml_config()
    return settings
