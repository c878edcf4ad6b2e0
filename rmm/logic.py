"""
Logic Layer Adapter

Connects the API routers to the service managers. Managers report expected
failures as (success, obj, message) tuples; this layer turns those into
NotFoundError / RMMError so routers only deal with exceptions.
"""

from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from rmm.exceptions import NotFoundError, RMMError
from rmm.models import (
    CommandTargetType,
    Computer,
    ComputerGroup,
    CustomCommand,
    ExecutionStatus,
    License,
    Monitor,
    MonitorExecutionLog,
    Procedure,
    ProcedureExecution,
    ScriptType,
)
from rmm.schemas import (
    AiSettings,
    AssociatedMonitorConfig,
    AssociatedProcedureConfig,
    GenerateScriptInput,
    GenerateScriptOutput,
    ImproveProcedureInput,
    ImproveProcedureOutput,
    LicenseOut,
    SMTPSettings,
    SystemLicenseOut,
)
from rmm.services.command_manager import CommandManager
from rmm.services.computer_manager import ComputerManager
from rmm.services.execution_manager import ExecutionManager
from rmm.services.group_manager import GroupManager
from rmm.services.license_manager import LicenseManager, license_status_text
from rmm.services.monitor_manager import MonitorManager
from rmm.services.procedure_manager import ProcedureManager
from rmm.services.script_assistant import ScriptAssistant
from rmm.services.settings_manager import SettingsManager
from rmm.services.system_license import SystemLicenseManager

IMPROVE_LOG_EXECUTIONS = 5


def _check(success: bool, msg: str):
    if success:
        return
    if "not found" in msg.lower():
        raise NotFoundError(msg)
    raise RMMError(msg)


def _require(obj, kind: str, obj_id: str):
    if obj is None:
        raise NotFoundError(f"{kind} {obj_id} not found")
    return obj


# ============================================================================
# COMPUTERS
# ============================================================================

def list_computers(session: Session) -> List[Computer]:
    return ComputerManager(session).list_computers()


def get_computer(computer_id: str, session: Session) -> Computer:
    return _require(ComputerManager(session).get_computer(computer_id), "Computer", computer_id)


def add_computer(session: Session, **fields) -> Computer:
    success, computer, msg = ComputerManager(session).add_computer(**fields)
    _check(success, msg)
    return computer


def update_computer(computer_id: str, session: Session, **fields) -> Computer:
    success, computer, msg = ComputerManager(session).update_computer(computer_id, **fields)
    _check(success, msg)
    return computer


def delete_computer(computer_id: str, session: Session):
    success, msg = ComputerManager(session).delete_computer(computer_id)
    _check(success, msg)


# ============================================================================
# GROUPS
# ============================================================================

def list_groups(session: Session) -> List[ComputerGroup]:
    return GroupManager(session).list_groups()


def get_group(group_id: str, session: Session) -> ComputerGroup:
    return _require(GroupManager(session).get_group(group_id), "Group", group_id)


def create_group(
    session: Session,
    runner,
    name: str,
    description: str = "",
    computer_ids: Sequence[str] = (),
    associated_procedures: Sequence[AssociatedProcedureConfig] = (),
    associated_monitors: Sequence[AssociatedMonitorConfig] = (),
) -> ComputerGroup:
    success, group, msg = GroupManager(session, runner).create_group(
        name, description, computer_ids, associated_procedures, associated_monitors
    )
    _check(success, msg)
    return group


def update_group(group_id: str, session: Session, runner, **fields) -> ComputerGroup:
    success, group, msg = GroupManager(session, runner).update_group(group_id, **fields)
    _check(success, msg)
    return group


def delete_group(group_id: str, session: Session):
    success, msg = GroupManager(session).delete_group(group_id)
    _check(success, msg)


def move_associated_procedure(group_id: str, procedure_id: str, direction: str, session: Session) -> ComputerGroup:
    success, group, msg = GroupManager(session).move_associated_procedure(group_id, procedure_id, direction)
    _check(success, msg)
    return group


# ============================================================================
# PROCEDURES & EXECUTIONS
# ============================================================================

def list_procedures(session: Session) -> List[Procedure]:
    return ProcedureManager(session).list_procedures()


def get_procedure(procedure_id: str, session: Session) -> Procedure:
    return _require(ProcedureManager(session).get_procedure(procedure_id), "Procedure", procedure_id)


def add_procedure(session: Session, **data) -> Procedure:
    success, procedure, msg = ProcedureManager(session).add_procedure(**data)
    _check(success, msg)
    return procedure


def update_procedure(procedure_id: str, session: Session, **data) -> Procedure:
    success, procedure, msg = ProcedureManager(session).update_procedure(procedure_id, **data)
    _check(success, msg)
    return procedure


def delete_procedure(procedure_id: str, session: Session):
    success, msg = ProcedureManager(session).delete_procedure(procedure_id)
    _check(success, msg)


def execute_procedure(procedure_id: str, computer_ids: Sequence[str], session: Session, runner):
    """Returns (executions, skipped_computer_ids)."""
    success, result, msg = ProcedureManager(session, runner).execute_procedure(procedure_id, computer_ids)
    _check(success, msg)
    return result


def list_procedure_executions(procedure_id: str, session: Session, days: int = ExecutionManager.HISTORY_WINDOW_DAYS):
    success, executions, msg = ProcedureManager(session).list_procedure_executions(procedure_id, days)
    _check(success, msg)
    return executions


def list_executions(
    session: Session,
    procedure_id: Optional[str] = None,
    computer_id: Optional[str] = None,
    status: Optional[ExecutionStatus] = None,
) -> List[ProcedureExecution]:
    if computer_id:
        get_computer(computer_id, session)
    return ExecutionManager(session).list_executions(procedure_id, computer_id, status)


def get_execution(execution_id: str, session: Session) -> ProcedureExecution:
    return _require(ExecutionManager(session).get_execution(execution_id), "Execution", execution_id)


# ============================================================================
# MONITORS
# ============================================================================

def list_monitors(session: Session) -> List[Monitor]:
    return MonitorManager(session).list_monitors()


def get_monitor(monitor_id: str, session: Session) -> Monitor:
    return _require(MonitorManager(session).get_monitor(monitor_id), "Monitor", monitor_id)


def add_monitor(session: Session, **data) -> Monitor:
    success, monitor, msg = MonitorManager(session).add_monitor(**data)
    _check(success, msg)
    return monitor


def update_monitor(monitor_id: str, session: Session, **data) -> Monitor:
    success, monitor, msg = MonitorManager(session).update_monitor(monitor_id, **data)
    _check(success, msg)
    return monitor


def delete_monitor(monitor_id: str, session: Session):
    success, msg = MonitorManager(session).delete_monitor(monitor_id)
    _check(success, msg)


def list_monitor_logs(
    session: Session, monitor_id: Optional[str] = None, computer_id: Optional[str] = None
) -> List[MonitorExecutionLog]:
    if monitor_id:
        get_monitor(monitor_id, session)
    return MonitorManager(session).list_monitor_logs(monitor_id, computer_id)


# ============================================================================
# CUSTOM COMMANDS
# ============================================================================

def send_command(
    session: Session, target_type: CommandTargetType, target_id: str, command: str, script_type: ScriptType
) -> List[CustomCommand]:
    success, commands, msg = CommandManager(session).send_command(target_type, target_id, command, script_type)
    _check(success, msg)
    return commands


def get_command_history(session: Session, computer_id: Optional[str] = None) -> List[CustomCommand]:
    return CommandManager(session).get_command_history(computer_id)


# ============================================================================
# LICENSES
# ============================================================================

def license_view(license: License) -> LicenseOut:
    return LicenseOut.model_validate(license).model_copy(update={"status_text": license_status_text(license)})


def list_licenses(session: Session, search: Optional[str] = None) -> List[License]:
    return LicenseManager(session).list_licenses(search)


def get_license(license_id: str, session: Session) -> License:
    return _require(LicenseManager(session).get_license(license_id), "License", license_id)


def add_license(session: Session, **data) -> License:
    success, license, msg = LicenseManager(session).add_license(**data)
    _check(success, msg)
    return license


def update_license(license_id: str, session: Session, **data) -> License:
    success, license, msg = LicenseManager(session).update_license(license_id, **data)
    _check(success, msg)
    return license


def delete_license(license_id: str, session: Session):
    success, msg = LicenseManager(session).delete_license(license_id)
    _check(success, msg)


def send_license_report(session: Session) -> dict:
    success, report, msg = LicenseManager(session).send_license_report()
    _check(success, msg)
    return report


# ============================================================================
# SYSTEM LICENSE & SETTINGS
# ============================================================================

def get_system_license_info(session: Session) -> SystemLicenseOut:
    return SystemLicenseManager(session).get_system_license_info()


def update_system_license_key(license_key: str, session: Session) -> SystemLicenseOut:
    success, info, msg = SystemLicenseManager(session).update_system_license_key(license_key)
    _check(success, msg)
    return info


def get_smtp_settings(session: Session) -> SMTPSettings:
    return SettingsManager(session).get_smtp_settings()


def save_smtp_settings(settings: SMTPSettings, session: Session) -> SMTPSettings:
    return SettingsManager(session).save_smtp_settings(settings)


def get_ai_settings(session: Session) -> AiSettings:
    return SettingsManager(session).get_ai_settings()


def save_ai_settings(settings: AiSettings, session: Session) -> AiSettings:
    return SettingsManager(session).save_ai_settings(settings)


# ============================================================================
# AI SCRIPT ASSISTANT
# ============================================================================

def get_script_assistant(session: Session) -> ScriptAssistant:
    return ScriptAssistant(get_ai_settings(session))


def generate_script(data: GenerateScriptInput, session: Session) -> GenerateScriptOutput:
    return get_script_assistant(session).generate_script(data)


def improve_procedure(data: ImproveProcedureInput, session: Session) -> ImproveProcedureOutput:
    return get_script_assistant(session).improve_procedure(data)


def improve_stored_procedure(procedure_id: str, session: Session) -> ImproveProcedureOutput:
    """Improve a stored procedure using the logs of its most recent executions."""
    procedure = get_procedure(procedure_id, session)
    recent = ExecutionManager(session).list_executions(procedure_id=procedure_id)[:IMPROVE_LOG_EXECUTIONS]
    logs = "\n\n".join(
        f"--- {e.computer_name or e.computer_id} ({e.status.value}) ---\n{e.logs or ''}" for e in recent
    )
    return improve_procedure(
        ImproveProcedureInput(procedure_script=procedure.script_content or "", execution_logs=logs),
        session,
    )
