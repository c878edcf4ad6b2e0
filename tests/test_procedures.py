"""
Procedure normalisation by system type, execution dispatch and history.
"""

from datetime import datetime, timedelta

from sqlalchemy import select

from rmm.models import (
    AssociatedProcedure,
    ComputerStatus,
    ExecutionStatus,
    ProcedureExecution,
    ProcedureSystemType,
    ScriptType,
    SoftwareUpdateMode,
)
from rmm.schemas import AssociatedProcedureConfig, WindowsUpdateScopeOptions
from rmm.services.group_manager import GroupManager
from rmm.services.procedure_manager import ProcedureManager


class TestSystemTypeNormalisation:

    def test_windows_update_forces_powershell_and_system_context(self, db):
        ok, proc, _ = ProcedureManager(db).add_procedure(
            name="Patch Tuesday",
            procedure_system_type=ProcedureSystemType.WINDOWS_UPDATE,
            script_type=ScriptType.CMD,
            run_as_user=True,
        )

        assert ok
        assert proc.script_type == ScriptType.POWERSHELL
        assert proc.run_as_user is False
        assert proc.windows_update_scope_options == {
            "include_os_updates": True,
            "include_microsoft_product_updates": True,
            "include_feature_updates": True,
        }
        assert "PSWindowsUpdate" in proc.script_content

    def test_windows_update_scope_shapes_script(self, db):
        ok, proc, _ = ProcedureManager(db).add_procedure(
            name="OS only",
            procedure_system_type=ProcedureSystemType.WINDOWS_UPDATE,
            windows_update_scope_options=WindowsUpdateScopeOptions(
                include_os_updates=True,
                include_microsoft_product_updates=False,
                include_feature_updates=False,
            ),
        )
        assert ok
        assert "MicrosoftUpdate" not in proc.script_content
        assert "Feature Packs" not in proc.script_content

    def test_software_update_all_clears_specific_list(self, db):
        ok, proc, _ = ProcedureManager(db).add_procedure(
            name="Update everything",
            procedure_system_type=ProcedureSystemType.SOFTWARE_UPDATE,
            software_update_mode=SoftwareUpdateMode.ALL,
            specific_software_to_update="Mozilla.Firefox",
            script_type=ScriptType.PYTHON,
        )

        assert ok
        assert proc.specific_software_to_update == ""
        assert proc.script_type == ScriptType.POWERSHELL
        assert "winget upgrade --all" in proc.script_content

    def test_plain_string_types_are_coerced(self, db):
        ok, proc, msg = ProcedureManager(db).add_procedure(
            name="Update all", procedure_system_type="SoftwareUpdate", software_update_mode="all"
        )

        assert ok, msg
        assert proc.procedure_system_type == ProcedureSystemType.SOFTWARE_UPDATE
        assert proc.software_update_mode == SoftwareUpdateMode.ALL
        assert "winget upgrade --all" in proc.script_content

    def test_software_update_specific_builds_per_package_lines(self, db):
        ok, proc, _ = ProcedureManager(db).add_procedure(
            name="Browsers",
            procedure_system_type=ProcedureSystemType.SOFTWARE_UPDATE,
            software_update_mode=SoftwareUpdateMode.SPECIFIC,
            specific_software_to_update="Mozilla.Firefox, Google.Chrome,,Mozilla.Firefox",
        )

        assert ok
        assert proc.specific_software_to_update == "Mozilla.Firefox, Google.Chrome"
        assert "--id Mozilla.Firefox" in proc.script_content
        assert "--id Google.Chrome" in proc.script_content

    def test_software_update_specific_requires_packages(self, db):
        ok, proc, msg = ProcedureManager(db).add_procedure(
            name="Nothing",
            procedure_system_type=ProcedureSystemType.SOFTWARE_UPDATE,
            software_update_mode=SoftwareUpdateMode.SPECIFIC,
            specific_software_to_update=" , ",
        )
        assert not ok
        assert proc is None

    def test_switching_type_clears_other_fields(self, db):
        manager = ProcedureManager(db)
        _, proc, _ = manager.add_procedure(
            name="WU", procedure_system_type=ProcedureSystemType.WINDOWS_UPDATE
        )

        ok, proc, _ = manager.update_procedure(
            proc.id,
            procedure_system_type=ProcedureSystemType.SOFTWARE_UPDATE,
            software_update_mode=SoftwareUpdateMode.ALL,
        )

        assert ok
        assert proc.windows_update_scope_options is None
        assert proc.software_update_mode == SoftwareUpdateMode.ALL

    def test_update_to_all_mode_clears_list(self, db):
        manager = ProcedureManager(db)
        _, proc, _ = manager.add_procedure(
            name="SU",
            procedure_system_type=ProcedureSystemType.SOFTWARE_UPDATE,
            software_update_mode=SoftwareUpdateMode.SPECIFIC,
            specific_software_to_update="7zip.7zip",
        )

        _, proc, _ = manager.update_procedure(proc.id, software_update_mode=SoftwareUpdateMode.ALL)

        assert proc.specific_software_to_update == ""

    def test_custom_script_requires_content(self, db):
        ok, _, msg = ProcedureManager(db).add_procedure(name="Empty", script_content="  ")
        assert not ok

    def test_update_bumps_updated_at(self, db, make_procedure):
        proc = make_procedure()
        before = proc.updated_at

        _, proc, _ = ProcedureManager(db).update_procedure(proc.id, description="new text")

        assert proc.updated_at > before
        assert proc.description == "new text"


class TestExecution:

    def test_execute_creates_pending_per_online_target(self, db, runner, make_computer, make_procedure):
        proc = make_procedure(run_as_user=True)
        online = make_computer("On")
        offline = make_computer("Off", ComputerStatus.OFFLINE)

        ok, (created, skipped), _ = ProcedureManager(db, runner).execute_procedure(proc.id, [online.id, offline.id])

        assert ok
        assert [e.computer_id for e in created] == [online.id]
        assert skipped == [offline.id]
        execution = created[0]
        assert execution.status == ExecutionStatus.PENDING
        assert execution.computer_name == "On"
        assert execution.run_as_user is True
        assert execution.logs.startswith("Execution started for")
        assert runner.submitted == [execution.id]

    def test_execute_with_only_offline_targets_fails(self, db, runner, make_computer, make_procedure):
        proc = make_procedure()
        offline = make_computer(status=ComputerStatus.OFFLINE)

        ok, result, msg = ProcedureManager(db, runner).execute_procedure(proc.id, [offline.id])

        assert not ok
        assert result is None
        assert runner.submitted == []

    def test_execute_unknown_computer(self, db, runner, make_procedure):
        proc = make_procedure()
        ok, _, msg = ProcedureManager(db, runner).execute_procedure(proc.id, ["comp-missing"])
        assert not ok
        assert "not found" in msg

    def test_history_window(self, db, make_computer, make_procedure):
        proc = make_procedure()
        pc = make_computer()
        old_end = datetime.utcnow() - timedelta(days=45)
        db.add_all([
            ProcedureExecution(
                procedure_id=proc.id, computer_id=pc.id, status=ExecutionStatus.SUCCESS,
                start_time=old_end - timedelta(minutes=1), end_time=old_end,
            ),
            ProcedureExecution(
                procedure_id=proc.id, computer_id=pc.id, status=ExecutionStatus.FAILED,
                start_time=datetime.utcnow() - timedelta(days=2), end_time=datetime.utcnow() - timedelta(days=2),
            ),
        ])
        db.commit()

        ok, recent, _ = ProcedureManager(db).list_procedure_executions(proc.id)

        assert ok
        assert [e.status for e in recent] == [ExecutionStatus.FAILED]

    def test_delete_procedure_removes_executions_and_associations(self, db, runner, make_computer, make_procedure):
        proc = make_procedure()
        pc = make_computer()
        GroupManager(db).create_group(
            "G", associated_procedures=[AssociatedProcedureConfig(procedure_id=proc.id)]
        )
        ProcedureManager(db, runner).execute_procedure(proc.id, [pc.id])

        ok, _ = ProcedureManager(db).delete_procedure(proc.id)

        assert ok
        db.expire_all()
        assert db.scalars(select(ProcedureExecution)).all() == []
        assert db.scalars(select(AssociatedProcedure)).all() == []
