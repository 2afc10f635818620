import pytest

from flowguard.analyzers import ProgramFlowAnalyzer
from flowguard.config import Settings


class StaticProvider:
    """Syntax provider returning prepared ASTs keyed by file name suffix."""

    def __init__(self, asts=None, failures=None):
        self.asts = asts or {}
        self.failures = failures or {}
        self.calls = []

    def parse(self, path, source):
        self.calls.append(path)
        for suffix, error in self.failures.items():
            if path.endswith(suffix):
                raise error
        for suffix, ast in self.asts.items():
            if path.endswith(suffix):
                return ast(source) if callable(ast) else ast
        return {'nodeType': 'SourceUnit', 'nodes': []}


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def analyzer(settings):
    return ProgramFlowAnalyzer(provider=StaticProvider(), settings=settings)


@pytest.fixture
def make_analyzer(settings):
    def _make(provider=None, **overrides):
        run_settings = Settings(**overrides) if overrides else settings
        return ProgramFlowAnalyzer(provider=provider or StaticProvider(), settings=run_settings)
    return _make
