"""
Centralized configuration for the slap-card game server.

Configuration is loaded from (in order of precedence):
1. Environment variables
2. .env file (if exists)
3. Default values

Usage:
    from config import config
    print(config.PORT)
    print(config.rule_defaults.to_rule_set())
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from constants import DEFAULT_MAX_PLAYERS
from slap_rules import PenaltyPolicy, RuleSet

# Load .env file if it exists
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


def get_env_optional_int(key: str) -> Optional[int]:
    """Get integer environment variable, or None if unset or malformed."""
    raw = os.environ.get(key, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@dataclass
class RuleDefaults:
    """Rules a new session starts with (players may change them before dealing)."""
    doubles: bool = True
    sandwich: bool = True
    marriage: bool = True
    top_bottom: bool = True
    adds_to_10: bool = True
    runs: bool = True
    face_cards: bool = True
    penalty_policy: str = PenaltyPolicy.BURN.value

    def to_rule_set(self) -> RuleSet:
        """Build the RuleSet for a new session."""
        return RuleSet(
            doubles=self.doubles,
            sandwich=self.sandwich,
            marriage=self.marriage,
            top_bottom=self.top_bottom,
            adds_to_10=self.adds_to_10,
            runs=self.runs,
            face_cards=self.face_cards,
            penalty_policy=self.penalty_policy,
        )


@dataclass
class ServerConfig:
    """Server configuration."""
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Session settings
    MAX_PLAYERS_PER_SESSION: int = DEFAULT_MAX_PLAYERS
    AUTO_START: bool = False
    REVEAL_HANDS: bool = False
    DISCONNECT_GRACE_SECONDS: int = 30
    SHUFFLE_SEATING: bool = True
    SHUFFLE_SEED: Optional[int] = None

    # Rule defaults
    rule_defaults: RuleDefaults = field(default_factory=RuleDefaults)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        penalty_policy = get_env("PENALTY_POLICY", PenaltyPolicy.BURN.value).lower()
        if penalty_policy not in {p.value for p in PenaltyPolicy}:
            penalty_policy = PenaltyPolicy.BURN.value

        return cls(
            HOST=get_env("HOST", "0.0.0.0"),
            PORT=get_env_int("PORT", 8000),
            DEBUG=get_env_bool("DEBUG", False),
            LOG_LEVEL=get_env("LOG_LEVEL", "INFO"),
            ENVIRONMENT=get_env("ENVIRONMENT", "development"),
            MAX_PLAYERS_PER_SESSION=get_env_int("MAX_PLAYERS_PER_SESSION", DEFAULT_MAX_PLAYERS),
            AUTO_START=get_env_bool("AUTO_START", False),
            REVEAL_HANDS=get_env_bool("REVEAL_HANDS", False),
            DISCONNECT_GRACE_SECONDS=get_env_int("DISCONNECT_GRACE_SECONDS", 30),
            SHUFFLE_SEATING=get_env_bool("SHUFFLE_SEATING", True),
            SHUFFLE_SEED=get_env_optional_int("SHUFFLE_SEED"),
            rule_defaults=RuleDefaults(
                doubles=get_env_bool("RULE_DOUBLES", True),
                sandwich=get_env_bool("RULE_SANDWICH", True),
                marriage=get_env_bool("RULE_MARRIAGE", True),
                top_bottom=get_env_bool("RULE_TOP_BOTTOM", True),
                adds_to_10=get_env_bool("RULE_ADDS_TO_10", True),
                runs=get_env_bool("RULE_RUNS", True),
                face_cards=get_env_bool("RULE_FACE_CARDS", True),
                penalty_policy=penalty_policy,
            ),
        )


# Global config instance - loaded once at module import
config = ServerConfig.from_env()


def reload_config() -> ServerConfig:
    """Reload configuration from environment (useful for testing)."""
    global config
    config = ServerConfig.from_env()
    return config
