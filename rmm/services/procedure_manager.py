"""
Procedure definitions and on-demand execution.

System procedures (WindowsUpdate, SoftwareUpdate) are normalised on every
write: they always run as PowerShell, their script body is generated from
their options, and fields belonging to other system types are cleared.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from rmm.models import (
    Computer,
    ComputerStatus,
    Procedure,
    ProcedureExecution,
    ProcedureSystemType,
    ScriptType,
    SoftwareUpdateMode,
)
from rmm.schemas import WindowsUpdateScopeOptions
from rmm.services.execution_manager import ExecutionManager
from rmm.services.procedure_scripts import (
    build_software_update_script,
    build_windows_update_script,
    split_software_list,
)

logger = logging.getLogger(__name__)

PROCEDURE_FIELDS = (
    "name",
    "description",
    "procedure_system_type",
    "script_type",
    "script_content",
    "run_as_user",
    "windows_update_scope_options",
    "software_update_mode",
    "specific_software_to_update",
)


def normalize_procedure(procedure: Procedure) -> Tuple[bool, str]:
    """
    Apply the system type rules to a procedure in place.

    Returns:
        (success: bool, message: str)
    """
    system_type = ProcedureSystemType(procedure.procedure_system_type or ProcedureSystemType.CUSTOM_SCRIPT)
    procedure.procedure_system_type = system_type

    if system_type == ProcedureSystemType.WINDOWS_UPDATE:
        scope = WindowsUpdateScopeOptions.model_validate(procedure.windows_update_scope_options or {})
        procedure.windows_update_scope_options = scope.model_dump()
        procedure.script_type = ScriptType.POWERSHELL
        procedure.run_as_user = False
        procedure.script_content = build_windows_update_script(
            scope.include_os_updates,
            scope.include_microsoft_product_updates,
            scope.include_feature_updates,
        )
        procedure.software_update_mode = None
        procedure.specific_software_to_update = None

    elif system_type == ProcedureSystemType.SOFTWARE_UPDATE:
        mode = SoftwareUpdateMode(procedure.software_update_mode or SoftwareUpdateMode.ALL)
        if mode == SoftwareUpdateMode.ALL:
            procedure.specific_software_to_update = ""
        else:
            packages = split_software_list(procedure.specific_software_to_update)
            if not packages:
                return False, "Specify at least one software id for a specific software update"
            procedure.specific_software_to_update = ", ".join(packages)
        procedure.software_update_mode = mode
        procedure.script_type = ScriptType.POWERSHELL
        procedure.script_content = build_software_update_script(mode.value, procedure.specific_software_to_update)
        procedure.windows_update_scope_options = None

    else:
        if not (procedure.script_content or "").strip():
            return False, "Script content is required for a custom script procedure"
        procedure.windows_update_scope_options = None
        procedure.software_update_mode = None
        procedure.specific_software_to_update = None

    return True, "ok"


class ProcedureManager:
    """
    Manages procedures and dispatches their executions.
    """

    def __init__(self, db: Session, runner=None):
        self.db = db
        self.runner = runner
        self.executions = ExecutionManager(db)

    def list_procedures(self) -> List[Procedure]:
        return list(self.db.scalars(select(Procedure).order_by(Procedure.created_at, Procedure.id)).all())

    def get_procedure(self, procedure_id: str) -> Optional[Procedure]:
        return self.db.get(Procedure, procedure_id)

    def add_procedure(self, **data) -> Tuple[bool, Optional[Procedure], str]:
        """
        Create a procedure.

        Returns:
            (success: bool, procedure: Procedure or None, message: str)
        """
        if not (data.get("name") or "").strip():
            return False, None, "Procedure name is required"

        procedure = Procedure()
        self._apply(procedure, data, partial=False)
        ok, msg = normalize_procedure(procedure)
        if not ok:
            return False, None, msg

        now = datetime.utcnow()
        procedure.created_at = now
        procedure.updated_at = now
        self.db.add(procedure)
        self.db.commit()
        logger.info(f"Added procedure {procedure.id} '{procedure.name}' ({procedure.procedure_system_type.value})")
        return True, procedure, "Procedure added"

    def update_procedure(self, procedure_id: str, **data) -> Tuple[bool, Optional[Procedure], str]:
        procedure = self.get_procedure(procedure_id)
        if not procedure:
            return False, None, f"Procedure {procedure_id} not found"
        if "name" in data and data["name"] is not None and not data["name"].strip():
            return False, None, "Procedure name is required"

        self._apply(procedure, data, partial=True)
        ok, msg = normalize_procedure(procedure)
        if not ok:
            self.db.rollback()
            return False, None, msg

        procedure.updated_at = datetime.utcnow()
        self.db.commit()
        logger.info(f"Updated procedure {procedure_id}")
        return True, procedure, "Procedure updated"

    def delete_procedure(self, procedure_id: str) -> Tuple[bool, str]:
        """Delete a procedure with its executions and group associations."""
        procedure = self.get_procedure(procedure_id)
        if not procedure:
            return False, f"Procedure {procedure_id} not found"

        execution_count = len(procedure.executions)
        link_count = len(procedure.group_links)
        self.db.delete(procedure)
        self.db.commit()
        logger.info(
            f"Deleted procedure {procedure_id}: removed {execution_count} executions, "
            f"{link_count} group associations"
        )
        return True, "Procedure deleted"

    # ========================================================================
    # EXECUTION
    # ========================================================================

    def execute_procedure(
        self, procedure_id: str, computer_ids: Sequence[str]
    ) -> Tuple[bool, Optional[Tuple[List[ProcedureExecution], List[str]]], str]:
        """
        Run a procedure on the given computers.

        Steps:
        1. Resolve the procedure and every target computer
        2. Create one Pending execution per Online target; others are skipped
        3. Commit, then submit each execution to the runner

        Returns:
            (success: bool, (executions, skipped_computer_ids) or None, message: str)
        """
        procedure = self.get_procedure(procedure_id)
        if not procedure:
            return False, None, f"Procedure {procedure_id} not found"
        if not computer_ids:
            return False, None, "Select at least one computer"

        targets: List[Computer] = []
        for computer_id in dict.fromkeys(computer_ids):
            computer = self.db.get(Computer, computer_id)
            if computer is None:
                return False, None, f"Computer {computer_id} not found"
            targets.append(computer)

        executions: List[ProcedureExecution] = []
        skipped: List[str] = []
        for computer in targets:
            if computer.status != ComputerStatus.ONLINE:
                skipped.append(computer.id)
                continue
            executions.append(self.executions.create_pending(procedure, computer))

        if not executions:
            return False, None, "None of the selected computers are online"

        self.db.commit()
        logger.info(
            f"Procedure {procedure_id} dispatched to {len(executions)} computers"
            + (f", skipped offline {skipped}" if skipped else "")
        )
        if self.runner is not None:
            for execution in executions:
                self.runner.submit(execution.id)
        return True, (executions, skipped), "Execution started"

    def list_procedure_executions(self, procedure_id: str, days: int = ExecutionManager.HISTORY_WINDOW_DAYS):
        if not self.get_procedure(procedure_id):
            return False, None, f"Procedure {procedure_id} not found"
        return True, self.executions.list_recent_for_procedure(procedure_id, days), "ok"

    def list_computer_executions(self, computer_id: str):
        if self.db.get(Computer, computer_id) is None:
            return False, None, f"Computer {computer_id} not found"
        return True, self.executions.list_executions(computer_id=computer_id), "ok"

    def _apply(self, procedure: Procedure, data: dict, partial: bool):
        for key in PROCEDURE_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if partial and value is None:
                continue
            if isinstance(value, WindowsUpdateScopeOptions):
                value = value.model_dump()
            setattr(procedure, key, value)
        if procedure.name:
            procedure.name = procedure.name.strip()
