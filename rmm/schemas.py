"""
API Schemas for the RMM control plane

Request bodies are validated here before any mutation reaches the store;
response models read straight from ORM objects (from_attributes).
"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from datetime import date, datetime

from rmm.models import (
    CommandStatus,
    CommandTargetType,
    ComputerStatus,
    ExecutionStatus,
    IntervalUnit,
    LicenseTerm,
    MonitorLogStatus,
    ProcedureSystemType,
    ScheduleIntervalUnit,
    ScheduleType,
    ScriptType,
    SoftwareUpdateMode,
    SystemLicenseStatus,
    new_id,
)

# Fields each schedule type must carry; anything else is dropped.
SCHEDULE_FIELDS = {
    ScheduleType.DISABLED: (),
    ScheduleType.RUN_ONCE: ("time",),
    ScheduleType.DAILY: ("time",),
    ScheduleType.WEEKLY: ("time", "day_of_week"),
    ScheduleType.MONTHLY: ("time", "day_of_month"),
    ScheduleType.CUSTOM_INTERVAL: ("interval_value", "interval_unit"),
}
_OPTIONAL_SCHEDULE_FIELDS = ("time", "day_of_week", "day_of_month", "interval_value", "interval_unit")


# ============================================================================
# SCHEDULES & ASSOCIATIONS
# ============================================================================

class ScheduleConfig(BaseModel):
    type: ScheduleType = ScheduleType.DISABLED
    time: Optional[str] = Field(None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="HH:MM")
    day_of_week: Optional[int] = Field(None, ge=0, le=6, description="0 = Sunday")
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    interval_value: Optional[int] = Field(None, ge=1)
    interval_unit: Optional[ScheduleIntervalUnit] = None

    @model_validator(mode="after")
    def _check_fields_for_type(self):
        required = SCHEDULE_FIELDS[self.type]
        missing = [name for name in required if getattr(self, name) is None]
        if missing:
            raise ValueError(f"schedule type '{self.type.value}' requires: {', '.join(missing)}")
        for name in _OPTIONAL_SCHEDULE_FIELDS:
            if name not in required:
                setattr(self, name, None)
        return self

    def to_json(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


class AssociatedProcedureConfig(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    procedure_id: str
    run_on_new_member: bool = False
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)


class AssociatedMonitorConfig(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    monitor_id: str
    schedule: Optional[ScheduleConfig] = None  # None -> monitor's default interval


def _reject_duplicate_links(procedures, monitors):
    if procedures is not None:
        ids = [p.procedure_id for p in procedures]
        if len(ids) != len(set(ids)):
            raise ValueError("a procedure can only be associated once per group")
    if monitors is not None:
        ids = [m.monitor_id for m in monitors]
        if len(ids) != len(set(ids)):
            raise ValueError("a monitor can only be associated once per group")


# ============================================================================
# COMPUTERS & GROUPS
# ============================================================================

class ComputerCreate(BaseModel):
    name: str = Field(..., min_length=1)
    os: str = ""
    ip_address: str = ""
    status: ComputerStatus = ComputerStatus.ONLINE


class ComputerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    os: Optional[str] = None
    ip_address: Optional[str] = None
    status: Optional[ComputerStatus] = None
    cpu_usage: Optional[float] = Field(None, ge=0, le=100)
    ram_usage: Optional[float] = Field(None, ge=0, le=100)
    disk_usage: Optional[float] = Field(None, ge=0, le=100)


class ComputerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    status: ComputerStatus
    os: str = ""
    ip_address: str = ""
    last_seen: Optional[datetime] = None
    cpu_usage: Optional[float] = None
    ram_usage: Optional[float] = None
    disk_usage: Optional[float] = None
    group_ids: List[str] = []


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    computer_ids: List[str] = []
    associated_procedures: List[AssociatedProcedureConfig] = []
    associated_monitors: List[AssociatedMonitorConfig] = []

    @model_validator(mode="after")
    def _unique_links(self):
        _reject_duplicate_links(self.associated_procedures, self.associated_monitors)
        return self


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    computer_ids: Optional[List[str]] = None
    associated_procedures: Optional[List[AssociatedProcedureConfig]] = None
    associated_monitors: Optional[List[AssociatedMonitorConfig]] = None

    @model_validator(mode="after")
    def _unique_links(self):
        _reject_duplicate_links(self.associated_procedures, self.associated_monitors)
        return self


class GroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str = ""
    computer_ids: List[str] = []
    associated_procedures: List[AssociatedProcedureConfig] = []
    associated_monitors: List[AssociatedMonitorConfig] = []


# ============================================================================
# PROCEDURES & EXECUTIONS
# ============================================================================

class WindowsUpdateScopeOptions(BaseModel):
    include_os_updates: bool = True
    include_microsoft_product_updates: bool = True
    include_feature_updates: bool = True


class ProcedureCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    procedure_system_type: ProcedureSystemType = ProcedureSystemType.CUSTOM_SCRIPT
    script_type: ScriptType = ScriptType.POWERSHELL
    script_content: str = ""
    run_as_user: bool = False
    windows_update_scope_options: Optional[WindowsUpdateScopeOptions] = None
    software_update_mode: Optional[SoftwareUpdateMode] = None
    specific_software_to_update: Optional[str] = None


class ProcedureUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    procedure_system_type: Optional[ProcedureSystemType] = None
    script_type: Optional[ScriptType] = None
    script_content: Optional[str] = None
    run_as_user: Optional[bool] = None
    windows_update_scope_options: Optional[WindowsUpdateScopeOptions] = None
    software_update_mode: Optional[SoftwareUpdateMode] = None
    specific_software_to_update: Optional[str] = None


class ProcedureOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str = ""
    procedure_system_type: ProcedureSystemType
    script_type: ScriptType
    script_content: str = ""
    run_as_user: bool = False
    windows_update_scope_options: Optional[WindowsUpdateScopeOptions] = None
    software_update_mode: Optional[SoftwareUpdateMode] = None
    specific_software_to_update: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ExecuteProcedureRequest(BaseModel):
    computer_ids: List[str] = Field(..., min_length=1)


class ExecutionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    procedure_id: str
    computer_id: str
    computer_name: Optional[str] = None
    status: ExecutionStatus
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    logs: str = ""
    output: Optional[str] = None
    run_as_user: bool = False


class ExecuteProcedureResult(BaseModel):
    executions: List[ExecutionOut]
    skipped_computer_ids: List[str] = []


# ============================================================================
# MONITORS
# ============================================================================

class MonitorCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    script_type: ScriptType = ScriptType.POWERSHELL
    script_content: str = Field(..., min_length=1)
    default_interval_value: int = Field(5, ge=1)
    default_interval_unit: IntervalUnit = IntervalUnit.MINUTES
    send_email_on_alert: bool = True


class MonitorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    script_type: Optional[ScriptType] = None
    script_content: Optional[str] = Field(None, min_length=1)
    default_interval_value: Optional[int] = Field(None, ge=1)
    default_interval_unit: Optional[IntervalUnit] = None
    send_email_on_alert: Optional[bool] = None


class MonitorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str = ""
    script_type: ScriptType
    script_content: str
    default_interval_value: int
    default_interval_unit: IntervalUnit
    send_email_on_alert: bool
    created_at: datetime
    updated_at: datetime


class MonitorLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    monitor_id: str
    computer_id: Optional[str] = None
    computer_name: Optional[str] = None
    timestamp: datetime
    status: MonitorLogStatus
    message: str = ""
    notified: bool = False


# ============================================================================
# CUSTOM COMMANDS
# ============================================================================

class CommandCreate(BaseModel):
    target_type: CommandTargetType = CommandTargetType.COMPUTER
    target_id: str = Field(..., min_length=1)
    command: str = Field(..., min_length=1)
    script_type: ScriptType = ScriptType.CMD

    @model_validator(mode="after")
    def _command_not_blank(self):
        if not self.command.strip():
            raise ValueError("command content cannot be empty")
        return self


class CommandOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    computer_id: str
    target_type: CommandTargetType
    target_id: str
    command: str
    script_type: ScriptType
    status: CommandStatus
    output: Optional[str] = None
    executed_at: Optional[datetime] = None


# ============================================================================
# LICENSES
# ============================================================================

class LicenseCreate(BaseModel):
    product_name: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)
    website_panel_address: Optional[str] = None
    license_term: LicenseTerm = LicenseTerm.ANNUAL
    purchase_date: Optional[date] = None
    enable_expiry_date: bool = True
    expiry_date: Optional[date] = None
    send_expiry_notification: bool = True
    notification_days_before: Optional[int] = Field(30, ge=1, le=30)
    notes: str = ""
    is_active: bool = True


class LicenseUpdate(BaseModel):
    product_name: Optional[str] = Field(None, min_length=1)
    quantity: Optional[int] = Field(None, ge=1)
    website_panel_address: Optional[str] = None
    license_term: Optional[LicenseTerm] = None
    purchase_date: Optional[date] = None
    enable_expiry_date: Optional[bool] = None
    expiry_date: Optional[date] = None
    send_expiry_notification: Optional[bool] = None
    notification_days_before: Optional[int] = Field(None, ge=1, le=30)
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class LicenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_name: str
    quantity: int
    website_panel_address: Optional[str] = None
    license_term: LicenseTerm
    purchase_date: Optional[date] = None
    enable_expiry_date: bool
    expiry_date: Optional[date] = None
    send_expiry_notification: bool
    notification_days_before: Optional[int] = None
    notes: str = ""
    is_active: bool
    status_text: str = ""
    created_at: datetime
    updated_at: datetime


class LicenseReport(BaseModel):
    recipient: str
    license_count: int
    summary: str


class SystemLicenseInfo(BaseModel):
    status: SystemLicenseStatus = SystemLicenseStatus.NOT_ACTIVATED
    license_key: Optional[str] = None
    licensed_pc_count: Optional[int] = None
    expiry_date: Optional[datetime] = None


class SystemLicenseOut(SystemLicenseInfo):
    current_pc_count: int = 0
    is_valid: bool = False


class SystemLicenseKeyUpdate(BaseModel):
    license_key: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _key_not_blank(self):
        self.license_key = self.license_key.strip()
        if not self.license_key:
            raise ValueError("license key is required")
        return self


# ============================================================================
# SETTINGS & AI
# ============================================================================

class SMTPSettings(BaseModel):
    server: str = ""
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    secure: bool = True
    from_email: str = ""
    default_to_email: str = ""


class SMTPSettingsUpdate(SMTPSettings):
    @model_validator(mode="after")
    def _required_for_delivery(self):
        if not self.server or self.port <= 0 or not self.from_email or not self.default_to_email:
            raise ValueError("server, port, from_email and default_to_email are required")
        return self


class AiProviderConfig(BaseModel):
    id: str = Field(default_factory=lambda: new_id("ai"))
    name: str = Field(..., min_length=1)
    provider_type: str = Field("openai", pattern=r"^(openai|googleai|custom)$")
    api_key: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None
    is_enabled: bool = False


class AiSettings(BaseModel):
    global_generation_enabled: bool = True
    provider_configs: List[AiProviderConfig] = []

    def active_provider(self) -> Optional[AiProviderConfig]:
        if not self.global_generation_enabled:
            return None
        return next((p for p in self.provider_configs if p.is_enabled), None)


class GenerateScriptInput(BaseModel):
    description: str = Field(..., min_length=1, description="What the script should do")
    script_type: ScriptType = ScriptType.POWERSHELL
    context: Optional[str] = Field(None, description="Extra guidance, e.g. target OS")


class GenerateScriptOutput(BaseModel):
    generated_script: str
    explanation: str = ""


class ImproveProcedureInput(BaseModel):
    procedure_script: str = Field(..., description="The script of the procedure to be improved")
    execution_logs: str = Field(..., description="The execution logs of the procedure")


class ImproveProcedureOutput(BaseModel):
    improved_script: str
    explanation: str = ""


# ============================================================================
# DASHBOARD
# ============================================================================

class DashboardOut(BaseModel):
    computers: dict
    procedure_executions: dict
    monitor_alerts_last_30_days: int
    average_cpu_usage: Optional[float] = None
    average_ram_usage: Optional[float] = None
