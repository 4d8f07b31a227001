import os
import time

# Console-only logging for the test run; must be set before datachat is imported.
os.environ["LOG_DIR"] = ""
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from sqlalchemy import create_engine, text

from datachat.core.security import EncryptionService
from datachat.db.session import get_sessionmaker
from datachat.models import Base, DataSource
from datachat.nl2sql.credentials import ConnectionParams
from datachat.nl2sql.llm_providers import LLMProvider, LLMResponse, ToolCall


class TrackingEngine:
    """Engine stand-in that counts disposals of a real SQLite engine."""

    def __init__(self, engine, fail_connect: Exception | None = None, connect_delay: float = 0.0):
        self.engine = engine
        self.fail_connect = fail_connect
        self.connect_delay = connect_delay
        self.connections = 0
        self.disposals = 0

    def connect(self):
        if self.connect_delay:
            time.sleep(self.connect_delay)
        if self.fail_connect is not None:
            raise self.fail_connect
        self.connections += 1
        return self.engine.connect()

    def dispose(self):
        self.disposals += 1
        self.engine.dispose()


class TrackingEngineFactory:
    """Engine factory for ``ConnectionManager`` pointing every request at one URL."""

    def __init__(self, url: str, fail_connect: Exception | None = None, connect_delay: float = 0.0):
        self.url = url
        self.fail_connect = fail_connect
        self.connect_delay = connect_delay
        self.engines: list[TrackingEngine] = []
        self.params: list[ConnectionParams] = []

    def __call__(self, params: ConnectionParams) -> TrackingEngine:
        self.params.append(params)
        engine = TrackingEngine(
            create_engine(self.url, connect_args={"check_same_thread": False}),
            fail_connect=self.fail_connect,
            connect_delay=self.connect_delay,
        )
        self.engines.append(engine)
        return engine

    @property
    def disposals(self) -> int:
        return sum(engine.disposals for engine in self.engines)


class ScriptedProvider(LLMProvider):
    """Provider replaying canned responses; exceptions in the script are raised."""

    name = "scripted"

    def __init__(self, *responses):
        super().__init__(api_key="test-key", model="scripted-model", max_tokens=256)
        self.responses = list(responses)
        self.calls: list[dict] = []

    async def query(self, system_prompt, user_prompt, *, tools=None, tool_choice=None, temperature=None):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "tools": tools,
                "tool_choice": tool_choice,
                "temperature": temperature,
            }
        )
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def text_response(content: str) -> LLMResponse:
    return LLMResponse(content=content, model="scripted-model", provider="scripted")


def tool_response(name: str, arguments: dict) -> LLMResponse:
    return LLMResponse(
        content="",
        model="scripted-model",
        provider="scripted",
        tool_calls=[ToolCall(name=name, arguments=arguments)],
    )


@pytest.fixture()
def encryption() -> EncryptionService:
    return EncryptionService("unit-test-passphrase")


@pytest.fixture()
def registry(tmp_path):
    """Session factory for a fresh registry database."""

    factory = get_sessionmaker(f"sqlite:///{tmp_path / 'registry.db'}")
    Base.metadata.create_all(factory.kw["bind"])
    return factory


@pytest.fixture()
def register_datasource(registry, encryption):
    def _register(project_id="proj-1", user_id=1, encrypted=True, **overrides):
        values = {
            "host": "db.internal",
            "database_name": "shop",
            "username": "reader",
            "password": "s3cret",
        }
        values.update(overrides)
        if encrypted:
            values = {key: encryption.encrypt(value) for key, value in values.items()}
        with registry() as session:
            record = DataSource(user_id=user_id, project_id=project_id, port=5432, **values)
            session.add(record)
            session.commit()
            return record.id

    return _register


@pytest.fixture()
def target_db_url(tmp_path) -> str:
    """SQLite stand-in for a user database holding an ``orders`` table."""

    url = f"sqlite:///{tmp_path / 'target.db'}"
    engine = create_engine(url)
    with engine.begin() as connection:
        connection.execute(
            text("CREATE TABLE orders (id INTEGER PRIMARY KEY, customer TEXT NOT NULL, amount REAL)")
        )
        connection.execute(
            text("INSERT INTO orders (id, customer, amount) VALUES (1, 'ada', 10.5), (2, 'grace', 19.5)")
        )
    engine.dispose()
    return url


@pytest.fixture()
def engine_factory(target_db_url) -> TrackingEngineFactory:
    return TrackingEngineFactory(target_db_url)


@pytest.fixture()
def connection_params() -> ConnectionParams:
    return ConnectionParams(
        host="db.internal",
        port=5432,
        database_name="shop",
        username="reader",
        password="s3cret",
    )
