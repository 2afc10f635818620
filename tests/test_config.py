from dataclasses import FrozenInstanceError

import pytest

from flowguard.config import DEFAULT_TEMPLATES_DIR, RuleConfig, Settings
from flowguard.utils.error_handling import ConfigurationError

ENV_VARS = [
    'FLOWGUARD_LOG_LEVEL', 'FLOWGUARD_LOG_FILE', 'FLOWGUARD_SOLC_VERSION',
    'FLOWGUARD_AUTO_INSTALL_SOLC', 'FLOWGUARD_MAX_WORKERS', 'FLOWGUARD_SORT_PATHS',
    'FLOWGUARD_MAX_CONTRACT_SIZE', 'FLOWGUARD_TEMPLATES_DIR',
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env):
        settings = Settings.from_env()
        assert settings.LOG_LEVEL == 'INFO'
        assert settings.LOG_FILE is None
        assert settings.SOLC_VERSION is None
        assert settings.AUTO_INSTALL_SOLC is False
        assert settings.MAX_WORKERS == 1
        assert settings.SORT_PATHS is False
        assert settings.MAX_CONTRACT_SIZE == 1024
        assert settings.TEMPLATES_DIR == DEFAULT_TEMPLATES_DIR
        assert settings.rules == RuleConfig()

    def test_values_from_environment(self, clean_env):
        clean_env.setenv('FLOWGUARD_LOG_LEVEL', 'debug')
        clean_env.setenv('FLOWGUARD_SOLC_VERSION', '0.8.19')
        clean_env.setenv('FLOWGUARD_AUTO_INSTALL_SOLC', 'true')
        clean_env.setenv('FLOWGUARD_MAX_WORKERS', '4')
        clean_env.setenv('FLOWGUARD_SORT_PATHS', 'yes')
        clean_env.setenv('FLOWGUARD_MAX_CONTRACT_SIZE', '64')

        settings = Settings.from_env()
        assert settings.LOG_LEVEL == 'DEBUG'
        assert settings.SOLC_VERSION == '0.8.19'
        assert settings.AUTO_INSTALL_SOLC is True
        assert settings.MAX_WORKERS == 4
        assert settings.SORT_PATHS is True
        assert settings.MAX_CONTRACT_SIZE == 64

    def test_non_integer_value(self, clean_env):
        clean_env.setenv('FLOWGUARD_MAX_WORKERS', 'many')
        with pytest.raises(ConfigurationError, match='FLOWGUARD_MAX_WORKERS must be an integer'):
            Settings.from_env()

    def test_worker_count_must_be_positive(self, clean_env):
        clean_env.setenv('FLOWGUARD_MAX_WORKERS', '0')
        with pytest.raises(ConfigurationError):
            Settings.from_env()


class TestRuleConfig:
    def test_default_tables(self):
        config = RuleConfig()
        assert config.owner_keywords == ('owner', 'admin', 'governor', 'controller')
        assert config.access_control_modifiers == frozenset({'onlyOwner', 'onlyAdmin', 'adminOnly'})
        assert config.entry_visibilities == frozenset({'public', 'external'})

    def test_is_immutable(self):
        with pytest.raises(FrozenInstanceError):
            RuleConfig().owner_keywords = ('root',)
