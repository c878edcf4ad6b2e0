import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from rmm.api.deps import get_execution_runner, get_telemetry
from rmm.database import get_db, init_db, make_engine
from rmm.main import app
from rmm.models import ComputerStatus
from rmm.services.computer_manager import ComputerManager
from rmm.services.execution_runner import ManualExecutionRunner
from rmm.services.procedure_manager import ProcedureManager
from rmm.services.telemetry import TelemetrySampler


@pytest.fixture
def engine(tmp_path):
    """File backed so the runner's sessions see committed rows like the service does."""
    engine = make_engine(f"sqlite:///{tmp_path / 'rmm.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def runner(session_factory):
    """Records submissions; tests resolve them explicitly."""
    return ManualExecutionRunner(session_factory)


@pytest.fixture
def client(session_factory, runner):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_execution_runner] = lambda: runner
    app.dependency_overrides[get_telemetry] = lambda: TelemetrySampler()
    # No context manager: startup (seed, simulated runner) stays off
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_computer(db):
    def _make(name="PC", status=ComputerStatus.ONLINE, os="Windows 11 Pro"):
        ok, computer, msg = ComputerManager(db).add_computer(name=name, os=os, ip_address="10.0.0.1", status=status)
        assert ok, msg
        return computer
    return _make


@pytest.fixture
def make_procedure(db):
    def _make(name="Proc", script="Write-Output 'hi'", **extra):
        ok, procedure, msg = ProcedureManager(db).add_procedure(name=name, script_content=script, **extra)
        assert ok, msg
        return procedure
    return _make
