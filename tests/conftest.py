"""
Pytest Configuration and Fixtures
"""

import os
import sys
import pytest
import tempfile
from typing import Any, Dict, Generator, List, Optional
import httpx
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from runreel.config.settings import Settings
from runreel.core.tavus_adapter import TavusAdapter
from runreel.models import init_db
from runreel.services.job_records import JobRecordStore
from tests.fixtures import SAMPLE_SCRIPT, SUBMIT_QUEUED_RESPONSE, STATUS_PROCESSING


@pytest.fixture
def test_db_path() -> Generator[str, None, None]:
    """Create temporary database file"""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.db', delete=False) as f:
        db_path = f.name
    yield db_path
    # Cleanup
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def test_db_engine(test_db_path: str) -> Generator:
    """Create test database engine"""
    engine = create_engine(f"sqlite:///{test_db_path}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def test_db_session(test_db_engine) -> Generator[Session, None, None]:
    """Create test database session"""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def record_store(test_db_session) -> JobRecordStore:
    """Job Record Store backed by the temporary database"""
    return JobRecordStore(test_db_session)


# Test configurations
@pytest.fixture
def test_settings() -> Settings:
    """Provider settings that never read a local .env"""
    return Settings(
        _env_file=None,
        tavus_api_key="test-tavus-key",
        tavus_replica_id="r-test-replica",
        tavus_base_url="https://tavus.test/v2",
        tavus_fast_generation=True,
        progress_tick_interval_s=0,
    )


@pytest.fixture
def unconfigured_settings() -> Settings:
    """Settings with no provider credentials"""
    return Settings(_env_file=None, tavus_api_key="", tavus_replica_id="")


class FakeClock:
    """Monotonic clock advanced only by the fake sleep"""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


class FakeTavus:
    """
    Scripted Tavus API served through httpx.MockTransport.

    Status entries are dicts (200 JSON), httpx.Response objects, or the
    string "network_error". The last entry repeats once the script runs out.
    """

    def __init__(
        self,
        submit_status: int = 200,
        submit_body: Any = None,
        statuses: Optional[List[Any]] = None,
    ):
        self.requests: List[httpx.Request] = []
        self.submit_status = submit_status
        self.submit_body = SUBMIT_QUEUED_RESPONSE if submit_body is None else submit_body
        self.statuses = list(statuses) if statuses else [STATUS_PROCESSING]
        self.on_status_request = None

    @property
    def post_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @property
    def get_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.method == "POST":
            if isinstance(self.submit_body, dict):
                return httpx.Response(self.submit_status, json=self.submit_body)
            return httpx.Response(self.submit_status, text=self.submit_body)

        if self.on_status_request:
            self.on_status_request(request)

        item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if item == "network_error":
            raise httpx.ConnectError("connection refused", request=request)
        if isinstance(item, httpx.Response):
            return item
        return httpx.Response(200, json=item)


@pytest.fixture
def fake_tavus() -> FakeTavus:
    return FakeTavus()


@pytest.fixture
def tavus_adapter(test_settings, fake_tavus) -> TavusAdapter:
    """Adapter wired to the scripted provider"""
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_tavus.handler))
    return TavusAdapter(settings=test_settings, client=client)


@pytest.fixture
def sample_generation_input():
    """Sample generation input"""
    from runreel.models.generation import GenerationInput
    return GenerationInput(subject_id="workout-42", script_text=SAMPLE_SCRIPT)


# Environment fixtures
@pytest.fixture
def mock_env_vars() -> Generator[Dict[str, str], None, None]:
    """Mock environment variables"""
    values = {
        "TAVUS_API_KEY": "env-tavus-key",
        "TAVUS_REPLICA_ID": "r-env-replica",
        "TAVUS_FAST_GENERATION": "false",
    }
    os.environ.update(values)

    yield values

    # Cleanup
    for key in values:
        if key in os.environ:
            del os.environ[key]
