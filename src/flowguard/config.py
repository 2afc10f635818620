"""
Configuration for FlowGuard.

Runtime settings are read from the environment (a local ``.env`` file is
loaded first), while the keyword tables used by the heuristics live in an
immutable ``RuleConfig`` that is injected into the analyzers.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Optional, Tuple

from dotenv import load_dotenv

from .utils.error_handling import ConfigurationError

# Load environment variables once at module level
load_dotenv()

DEFAULT_TEMPLATES_DIR = str(Path(__file__).parent / 'templates')

_TRUTHY = {'1', 'true', 'yes', 'on'}


@dataclass(frozen=True)
class RuleConfig:
    """Keyword tables consumed by the summarizer, heuristics and rules."""
    owner_keywords: Tuple[str, ...] = ('owner', 'admin', 'governor', 'controller')
    access_control_modifiers: FrozenSet[str] = frozenset({'onlyOwner', 'onlyAdmin', 'adminOnly'})
    entry_visibilities: FrozenSet[str] = frozenset({'public', 'external'})
    read_only_mutabilities: FrozenSet[str] = frozenset({'view', 'pure'})
    # Use UncheckedBlock spans from the AST when the compiler provides them.
    prefer_ast_unchecked_spans: bool = True


DEFAULT_RULE_CONFIG = RuleConfig()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer, got {value!r}",
            details={'variable': name, 'value': value}
        )


@dataclass
class Settings:
    LOG_LEVEL: str = 'INFO'
    LOG_FILE: Optional[str] = None
    SOLC_VERSION: Optional[str] = None
    AUTO_INSTALL_SOLC: bool = False
    MAX_WORKERS: int = 1
    SORT_PATHS: bool = False
    MAX_CONTRACT_SIZE: int = 1024  # KB
    TEMPLATES_DIR: str = DEFAULT_TEMPLATES_DIR
    rules: RuleConfig = field(default_factory=RuleConfig)

    @classmethod
    def from_env(cls) -> 'Settings':
        """Build settings from FLOWGUARD_* environment variables."""
        settings = cls(
            LOG_LEVEL=os.getenv('FLOWGUARD_LOG_LEVEL', 'INFO').upper(),
            LOG_FILE=os.getenv('FLOWGUARD_LOG_FILE') or None,
            SOLC_VERSION=os.getenv('FLOWGUARD_SOLC_VERSION') or None,
            AUTO_INSTALL_SOLC=_env_bool('FLOWGUARD_AUTO_INSTALL_SOLC', False),
            MAX_WORKERS=_env_int('FLOWGUARD_MAX_WORKERS', 1),
            SORT_PATHS=_env_bool('FLOWGUARD_SORT_PATHS', False),
            MAX_CONTRACT_SIZE=_env_int('FLOWGUARD_MAX_CONTRACT_SIZE', 1024),
            TEMPLATES_DIR=os.getenv('FLOWGUARD_TEMPLATES_DIR', DEFAULT_TEMPLATES_DIR),
        )
        if settings.MAX_WORKERS < 1:
            raise ConfigurationError(
                "FLOWGUARD_MAX_WORKERS must be at least 1",
                details={'value': settings.MAX_WORKERS}
            )
        return settings


settings = Settings.from_env()
