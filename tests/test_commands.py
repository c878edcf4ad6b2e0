import random

from rmm.models import CommandStatus, CommandTargetType, ComputerStatus, ScriptType
from rmm.services.command_manager import CommandManager
from rmm.services.group_manager import GroupManager


def test_send_to_computer_starts_pending(db, make_computer):
    pc = make_computer("Finance-PC")

    ok, commands, _ = CommandManager(db).send_command(
        CommandTargetType.COMPUTER, pc.id, "ipconfig /all", ScriptType.CMD
    )

    assert ok
    assert len(commands) == 1
    assert commands[0].status == CommandStatus.PENDING
    assert commands[0].computer_id == pc.id


def test_send_to_offline_computer_rejected(db, make_computer):
    pc = make_computer(status=ComputerStatus.OFFLINE)
    ok, commands, msg = CommandManager(db).send_command(CommandTargetType.COMPUTER, pc.id, "dir")
    assert not ok
    assert commands is None


def test_blank_command_rejected(db, make_computer):
    pc = make_computer()
    ok, _, msg = CommandManager(db).send_command(CommandTargetType.COMPUTER, pc.id, "   ")
    assert not ok
    assert "empty" in msg


def test_group_target_fans_out_to_online_members(db, make_computer):
    on1, on2 = make_computer("On-1"), make_computer("On-2")
    off = make_computer("Off", ComputerStatus.OFFLINE)
    _, group, _ = GroupManager(db).create_group("G", computer_ids=[on1.id, off.id, on2.id])

    ok, commands, _ = CommandManager(db).send_command(CommandTargetType.GROUP, group.id, "hostname")

    assert ok
    assert [c.computer_id for c in commands] == [on1.id, on2.id]
    assert all(c.target_id == group.id for c in commands)


def test_group_without_online_members_rejected(db, make_computer):
    off = make_computer(status=ComputerStatus.OFFLINE)
    _, group, _ = GroupManager(db).create_group("G", computer_ids=[off.id])
    ok, _, msg = CommandManager(db).send_command(CommandTargetType.GROUP, group.id, "hostname")
    assert not ok


def test_history_settles_outstanding_commands(db, make_computer):
    pc = make_computer("Server-Main")
    manager = CommandManager(db, success_rate=1.0, rng=random.Random(1))
    manager.send_command(CommandTargetType.COMPUTER, pc.id, "whoami")

    history = manager.get_command_history()

    assert len(history) == 1
    assert history[0].status == CommandStatus.SUCCESS
    assert history[0].output == "Command executed successfully on Server-Main. Output: OK"


def test_failed_settlement_names_computer(db, make_computer):
    pc = make_computer("Kiosk")
    manager = CommandManager(db, success_rate=0.0)
    manager.send_command(CommandTargetType.COMPUTER, pc.id, "whoami")

    history = manager.get_command_history(computer_id=pc.id)

    assert history[0].status == CommandStatus.FAILED
    assert "Kiosk" in history[0].output


def test_settled_commands_stay_settled(db, make_computer):
    pc = make_computer()
    CommandManager(db, success_rate=1.0).send_command(CommandTargetType.COMPUTER, pc.id, "ver")
    CommandManager(db, success_rate=1.0).get_command_history()

    history = CommandManager(db, success_rate=0.0).get_command_history()

    assert history[0].status == CommandStatus.SUCCESS
