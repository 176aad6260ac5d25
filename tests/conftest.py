"""
Pytest configuration and fixtures for exporter tests.

Provides a scripted stand-in for the database executor so scrape tasks and
collectors can be exercised without an Altibase server or ODBC driver.
"""

from contextlib import contextmanager

import pytest

from altibase_exporter.db.errors import ExecutorUnavailableError


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


class FakeExecutor:
    """
    Executor answering SQL from a list of rules.

    Each rule is ``(pattern, result)`` or ``(pattern, result, columns)``.
    The first rule whose pattern is a substring of the SQL wins. A result
    that is an exception instance is raised; otherwise it is the row list.
    SQL matching no rule returns no rows.
    """

    def __init__(self, rules=None):
        self.rules = list(rules or [])
        self.executed: list[str] = []
        self.columns: list[str] = []
        self.closed = False

    def _answer(self, sql):
        self.executed.append(sql)
        for rule in self.rules:
            pattern, result = rule[0], rule[1]
            if pattern in sql:
                if isinstance(result, Exception):
                    raise result
                self.columns = list(rule[2]) if len(rule) > 2 else []
                return [tuple(row) for row in result]
        self.columns = []
        return []

    def query(self, sql):
        return self._answer(sql)

    def query_one(self, sql):
        rows = self._answer(sql)
        return rows[0] if rows else None

    def execute(self, sql):
        self._answer(sql)

    def close(self):
        self.closed = True

    def ran(self, fragment: str) -> bool:
        return any(fragment in sql for sql in self.executed)


class FakeConnection:
    """Connection handing out one FakeExecutor, or none when unavailable."""

    def __init__(self, executor=None, unavailable=False):
        self._executor = executor if executor is not None else FakeExecutor()
        self.unavailable = unavailable
        self.acquired = 0

    @contextmanager
    def executor(self):
        if self.unavailable:
            raise ExecutorUnavailableError("connection is down")
        self.acquired += 1
        yield self._executor


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def fake_connection(fake_executor):
    return FakeConnection(fake_executor)


@pytest.fixture
def make_executor():
    """Factory for FakeExecutor with the given rules."""
    return FakeExecutor


@pytest.fixture
def make_connection():
    """Factory for FakeConnection."""
    return FakeConnection
