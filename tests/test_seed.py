from sqlalchemy import func, select

from rmm.models import Computer, ComputerGroup, ExecutionStatus, ProcedureExecution
from rmm.services.dashboard import get_dashboard
from rmm.services.seed import seed_demo_data
from rmm.services.settings_manager import SettingsManager


def test_seed_loads_demo_fleet(db):
    assert seed_demo_data(db) is True

    assert db.scalar(select(func.count()).select_from(Computer)) == 5
    assert db.get(Computer, "comp-3").group_ids == ["group-1", "group-3"]
    assert db.get(ComputerGroup, "group-2").computer_ids == ["comp-2", "comp-5"]
    assert db.get(Computer, "comp-4").group_ids == []
    assert SettingsManager(db).get_smtp_settings().default_to_email == ""


def test_seed_is_idempotent(db):
    seed_demo_data(db)
    assert seed_demo_data(db) is False
    assert db.scalar(select(func.count()).select_from(Computer)) == 5


def test_dashboard_over_seed(db):
    seed_demo_data(db)

    dashboard = get_dashboard(db)

    assert dashboard.computers == {"total": 5, "Online": 3, "Offline": 1, "Error": 1}
    assert dashboard.procedure_executions == {"success": 1, "failed": 1, "pending": 0}
    assert dashboard.monitor_alerts_last_30_days == 2
    assert dashboard.average_cpu_usage is not None


def test_seeded_executions_keep_terminal_status(db):
    seed_demo_data(db)

    statuses = {e.id: e.status for e in db.scalars(select(ProcedureExecution)).all()}
    assert statuses == {"exec-1": ExecutionStatus.SUCCESS, "exec-2": ExecutionStatus.FAILED}
