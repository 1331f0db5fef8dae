import json
import logging

import pytest

from task_api import repositories
from task_api.db import SQLiteStore
from task_api.dynamodb import DynamoDBStore
from task_api.logging_setup import JSONFormatter, setup_logging
from task_api.settings import get_settings
from task_api.stores import InMemoryStore

ENV_VARS = [
    "PERSISTENCE_BACKEND",
    "SQLITE_DB_PATH",
    "TASKS_TABLE",
    "AWS_REGION",
    "DYNAMODB_ENDPOINT_URL",
    "CORS_ALLOW_ORIGINS",
    "LOGGING_ENABLED",
    "LOGGING_LEVEL",
    "LOGGING_FORMAT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env):
        s = get_settings()
        assert s.persistence_backend == "memory"
        assert s.sqlite_db_path == "./data/tasks.db"
        assert s.tasks_table is None
        assert s.aws_region == "us-east-1"
        assert s.dynamodb_endpoint_url is None
        assert s.cors_allow_origins == ["*"]
        assert s.logging_enabled is True
        assert s.logging_level == "debug"
        assert s.logging_format == "json"

    def test_overrides(self, clean_env):
        clean_env.setenv("PERSISTENCE_BACKEND", "SQLite")
        clean_env.setenv("AWS_REGION", "eu-west-1")
        clean_env.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example")
        clean_env.setenv("LOGGING_ENABLED", "false")
        clean_env.setenv("LOGGING_LEVEL", "warn")
        clean_env.setenv("LOGGING_FORMAT", "text")
        s = get_settings()
        assert s.persistence_backend == "sqlite"
        assert s.aws_region == "eu-west-1"
        assert s.cors_allow_origins == ["https://a.example", "https://b.example"]
        assert s.logging_enabled is False
        assert s.logging_level == "warn"
        assert s.logging_format == "text"

    def test_unknown_values_fall_back(self, clean_env):
        clean_env.setenv("PERSISTENCE_BACKEND", "postgres")
        clean_env.setenv("LOGGING_LEVEL", "verbose")
        clean_env.setenv("LOGGING_FORMAT", "xml")
        s = get_settings()
        assert s.persistence_backend == "memory"
        assert s.logging_level == "debug"
        assert s.logging_format == "json"

    def test_dynamodb_requires_table(self, clean_env):
        clean_env.setenv("PERSISTENCE_BACKEND", "dynamodb")
        with pytest.raises(ValueError, match="TASKS_TABLE"):
            get_settings()
        clean_env.setenv("TASKS_TABLE", "   ")
        with pytest.raises(ValueError):
            get_settings()

    def test_dynamodb_with_table(self, clean_env):
        clean_env.setenv("PERSISTENCE_BACKEND", "dynamodb")
        clean_env.setenv("TASKS_TABLE", "my-tasks-table")
        assert get_settings().tasks_table == "my-tasks-table"


class TestCreateStore:
    def test_memory(self, clean_env):
        assert isinstance(repositories.create_store(), InMemoryStore)

    def test_sqlite(self, clean_env, tmp_path):
        clean_env.setenv("PERSISTENCE_BACKEND", "sqlite")
        clean_env.setenv("SQLITE_DB_PATH", str(tmp_path / "tasks.db"))
        assert isinstance(repositories.create_store(), SQLiteStore)

    def test_dynamodb(self, clean_env):
        clean_env.setenv("PERSISTENCE_BACKEND", "dynamodb")
        clean_env.setenv("TASKS_TABLE", "my-tasks-table")
        sentinel = DynamoDBStore(client=object(), table_name="my-tasks-table")
        clean_env.setattr(DynamoDBStore, "from_settings", classmethod(lambda cls, **kw: sentinel))
        assert repositories.create_store() is sentinel

    def test_get_repository_is_a_process_singleton(self, clean_env):
        repositories.get_repository.cache_clear()
        try:
            assert repositories.get_repository() is repositories.get_repository()
        finally:
            repositories.get_repository.cache_clear()


class TestLogging:
    def test_json_formatter_includes_extras(self):
        record = logging.LogRecord("task_api.repositories", logging.INFO, __file__, 1, "created %s", ("t1",), None)
        record.task_id = "t1"
        data = json.loads(JSONFormatter().format(record))
        assert data["level"] == "INFO"
        assert data["logger"] == "task_api.repositories"
        assert data["message"] == "created t1"
        assert data["task_id"] == "t1"
        assert "count" not in data

    def test_setup_is_idempotent_and_respects_level(self, clean_env):
        clean_env.setenv("LOGGING_LEVEL", "error")
        logger = setup_logging(get_settings())
        logger = setup_logging(get_settings())
        ours = [h for h in logger.handlers if type(h).__name__ == "_TaskApiHandler"]
        assert len(ours) == 1
        assert logger.level == logging.ERROR
        assert isinstance(ours[0].formatter, JSONFormatter)

    def test_disabled_logging_silences_children(self, clean_env):
        clean_env.setenv("LOGGING_ENABLED", "false")
        setup_logging(get_settings())
        assert not logging.getLogger("task_api.repositories").isEnabledFor(logging.CRITICAL)
