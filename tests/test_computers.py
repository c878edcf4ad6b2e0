from datetime import datetime

from sqlalchemy import select

from rmm.models import (
    CommandTargetType,
    Computer,
    ComputerGroup,
    ComputerStatus,
    CustomCommand,
    MonitorExecutionLog,
    MonitorLogStatus,
    ProcedureExecution,
)
from rmm.services.command_manager import CommandManager
from rmm.services.computer_manager import ComputerManager
from rmm.services.group_manager import GroupManager
from rmm.services.monitor_manager import MonitorManager
from rmm.services.procedure_manager import ProcedureManager
from rmm.services.telemetry import TelemetrySampler


def test_add_computer_starts_without_groups(db):
    ok, computer, _ = ComputerManager(db).add_computer(name="  Laptop-01 ", os="Windows 11 Pro")

    assert ok
    assert computer.name == "Laptop-01"
    assert computer.group_ids == []
    assert computer.last_seen is not None
    assert computer.cpu_usage is not None


def test_add_computer_requires_name(db):
    ok, computer, msg = ComputerManager(db).add_computer(name="   ")
    assert not ok
    assert computer is None


def test_update_computer_rejects_unknown_field(db, make_computer):
    pc = make_computer()
    ok, _, msg = ComputerManager(db).update_computer(pc.id, group_ids=["group-x"])
    assert not ok
    assert "group_ids" in msg


def test_update_computer_status(db, make_computer):
    pc = make_computer()
    ok, computer, _ = ComputerManager(db).update_computer(pc.id, status=ComputerStatus.OFFLINE, name=None)
    assert ok
    assert computer.status == ComputerStatus.OFFLINE
    assert computer.name == "PC"


def test_delete_computer_cascades(db, runner, make_computer, make_procedure):
    victim = make_computer("Victim")
    other = make_computer("Other")
    proc = make_procedure()
    groups = GroupManager(db)
    _, group, _ = groups.create_group("G", computer_ids=[victim.id, other.id])
    ProcedureManager(db, runner).execute_procedure(proc.id, [victim.id, other.id])
    _, monitor, _ = MonitorManager(db).add_monitor(name="M", script_content="Write-Output 'OK: fine'")
    db.add(MonitorExecutionLog(
        monitor_id=monitor.id, computer_id=victim.id, computer_name=victim.name,
        timestamp=datetime.utcnow(), status=MonitorLogStatus.OK, message="OK",
    ))
    db.commit()
    commands = CommandManager(db)
    commands.send_command(CommandTargetType.COMPUTER, victim.id, "ipconfig")
    commands.send_command(CommandTargetType.COMPUTER, other.id, "ipconfig")

    ok, _ = ComputerManager(db).delete_computer(victim.id)

    assert ok
    db.expire_all()
    assert db.get(Computer, victim.id) is None
    assert db.get(ComputerGroup, group.id).computer_ids == [other.id]
    assert [e.computer_id for e in db.scalars(select(ProcedureExecution)).all()] == [other.id]
    assert db.scalars(select(MonitorExecutionLog)).all() == []
    assert [c.computer_id for c in db.scalars(select(CustomCommand)).all()] == [other.id]


def test_delete_missing_computer(db):
    ok, msg = ComputerManager(db).delete_computer("comp-missing")
    assert not ok
    assert "not found" in msg


class TestTelemetry:

    def test_online_computer_gets_fresh_metrics(self, db, make_computer):
        pc = make_computer()
        view = TelemetrySampler().observe(pc)

        assert 0 <= view.cpu_usage <= 100
        assert 0 <= view.ram_usage <= 100
        assert (datetime.utcnow() - view.last_seen).total_seconds() <= 61

    def test_offline_computer_is_untouched(self, db, make_computer):
        pc = make_computer(status=ComputerStatus.OFFLINE)
        view = TelemetrySampler().observe(pc)
        assert view.cpu_usage is None
        assert view.last_seen == pc.last_seen

    def test_read_does_not_write_back(self, db, make_computer):
        pc = make_computer()
        stored_cpu = pc.cpu_usage
        for _ in range(5):
            TelemetrySampler().observe(pc)
        db.expire_all()
        assert db.get(Computer, pc.id).cpu_usage == stored_cpu
