"""Configuration handling for the Reddit thread finder."""

import os
from dataclasses import dataclass, field
from typing import List, Optional

import yaml
from dotenv import load_dotenv

DEFAULT_USER_AGENT = "thread_finder/0.1 (bot; contact: findthisthread@example.com)"


@dataclass
class RateLimitConfig:
    """Request pacing and backoff configuration."""

    authenticated_delay_sec: float = 1.0
    unauthenticated_delay_sec: float = 6.0
    max_delay_sec: float = 60.0
    cooldown_sec: float = 60.0
    backoff_factor: float = 2.0
    decay_factor: float = 0.8
    token_refresh_margin_sec: float = 60.0
    request_timeout_sec: float = 15.0


@dataclass
class ScoringConfig:
    """Match scoring weights and thresholds.

    These are empirically chosen calibration points, not derived values.
    """

    title_weight: float = 0.6
    author_weight: float = 0.2
    subreddit_weight: float = 0.2
    exact_title_similarity: float = 0.9
    exact_title_bonus: float = 0.15
    body_similarity: float = 0.5
    body_bonus: float = 0.1
    comment_contains_bonus: float = 0.5
    comment_user_boost: float = 0.2
    short_snippet_length: int = 80
    short_snippet_threshold: float = 0.2
    comment_threshold: float = 0.3
    short_circuit_confidence: float = 0.8
    min_confidence: float = 0.4


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""

    enable_prometheus: bool = False
    prometheus_port: int = 8000


@dataclass
class Config:
    """Application configuration combining environment variables and YAML config."""

    # Reddit OAuth credentials from environment (optional)
    client_id: str = ""
    client_secret: str = ""
    user_agent: str = DEFAULT_USER_AGENT

    base_url: str = "https://www.reddit.com"
    oauth_base_url: str = "https://oauth.reddit.com"
    search_limit: int = 25
    max_comment_pages: int = 10
    enable_body_search: bool = True
    failure_threshold: int = 5
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @property
    def is_authenticated(self) -> bool:
        """True when both OAuth client credentials are configured."""
        return bool(self.client_id and self.client_secret)

    @classmethod
    def from_files(cls, config_path: Optional[str] = None, env_path: Optional[str] = None) -> "Config":
        """
        Load configuration from a YAML file and environment variables.

        Args:
            config_path: Path to YAML configuration file (optional, may not exist)
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config instance with merged configuration
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        config = cls()
        config.client_id = os.getenv("REDDIT_CLIENT_ID", "")
        config.client_secret = os.getenv("REDDIT_CLIENT_SECRET", "")
        config.user_agent = os.getenv("REDDIT_USER_AGENT", DEFAULT_USER_AGENT)

        if config_path and os.path.exists(config_path):
            with open(config_path, "r", encoding="utf-8") as file:
                yaml_config = yaml.safe_load(file)

            if yaml_config:
                nested = {
                    "rate_limit": RateLimitConfig,
                    "scoring": ScoringConfig,
                    "monitoring": MonitoringConfig,
                }
                for key, value in yaml_config.items():
                    if key in nested:
                        if isinstance(value, dict):
                            section = nested[key]()
                            for sub_key, sub_value in value.items():
                                if hasattr(section, sub_key):
                                    setattr(section, sub_key, sub_value)
                            setattr(config, key, section)
                    elif hasattr(config, key) and key not in ("client_id", "client_secret"):
                        setattr(config, key, value)

        return config

    def validate(self) -> List[str]:
        """
        Validate configuration and return a list of validation errors.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if bool(self.client_id) != bool(self.client_secret):
            errors.append("REDDIT_CLIENT_ID and REDDIT_CLIENT_SECRET must be set together")
        if not self.user_agent:
            errors.append("user_agent must not be empty")
        if not self.base_url.startswith("https://"):
            errors.append("base_url must be an https URL")

        if not 1 <= self.search_limit <= 100:
            errors.append("search_limit must be between 1 and 100")
        if self.max_comment_pages <= 0:
            errors.append("max_comment_pages must be greater than 0")
        if self.failure_threshold <= 0:
            errors.append("failure_threshold must be greater than 0")

        rate = self.rate_limit
        if rate.authenticated_delay_sec <= 0 or rate.unauthenticated_delay_sec <= 0:
            errors.append("request delays must be greater than 0")
        if rate.max_delay_sec < max(rate.authenticated_delay_sec, rate.unauthenticated_delay_sec):
            errors.append("max_delay_sec must not be below the base request delays")
        if not 0 < rate.decay_factor <= 1:
            errors.append("decay_factor must be in (0, 1]")
        if rate.backoff_factor < 1:
            errors.append("backoff_factor must be at least 1")

        scoring = self.scoring
        if not 0 <= scoring.min_confidence <= scoring.short_circuit_confidence <= 1:
            errors.append("scoring thresholds must satisfy 0 <= min_confidence <= short_circuit_confidence <= 1")

        return errors
