from sqlalchemy import (
    Column,
    Integer,
    String,
    Enum,
    ForeignKey,
    Float,
    Boolean,
    DateTime,
    Date,
    Text,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
import enum
import uuid

Base = declarative_base()


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}"


# ============================================================================
# ENUM DEFINITIONS
# ============================================================================

class ComputerStatus(str, enum.Enum):
    """Agent connectivity state of a managed computer"""
    ONLINE = "Online"
    OFFLINE = "Offline"
    ERROR = "Error"

class ScriptType(str, enum.Enum):
    """Interpreter a script is written for"""
    CMD = "CMD"
    POWERSHELL = "PowerShell"
    PYTHON = "Python"

class ProcedureSystemType(str, enum.Enum):
    """Kind of procedure; system types carry a generated script"""
    CUSTOM_SCRIPT = "CustomScript"
    WINDOWS_UPDATE = "WindowsUpdate"
    SOFTWARE_UPDATE = "SoftwareUpdate"

class SoftwareUpdateMode(str, enum.Enum):
    ALL = "all"
    SPECIFIC = "specific"

class ExecutionStatus(str, enum.Enum):
    """Procedure execution state"""
    PENDING = "Pending"
    RUNNING = "Running"
    SUCCESS = "Success"
    FAILED = "Failed"
    CANCELLED = "Cancelled"

class IntervalUnit(str, enum.Enum):
    """Unit of a monitor's default check interval"""
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"

class ScheduleType(str, enum.Enum):
    """Schedule variants for group procedure and monitor associations"""
    DISABLED = "disabled"
    RUN_ONCE = "runOnce"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM_INTERVAL = "customInterval"

class ScheduleIntervalUnit(str, enum.Enum):
    MINUTES = "minutes"
    HOURS = "hours"

class MonitorLogStatus(str, enum.Enum):
    OK = "OK"
    ALERT = "ALERT"
    ERROR = "Error"
    RUNNING = "Running"

class CommandTargetType(str, enum.Enum):
    COMPUTER = "computer"
    GROUP = "group"

class CommandStatus(str, enum.Enum):
    """Custom command delivery state"""
    PENDING = "Pending"
    SENT = "Sent"
    SUCCESS = "Success"
    FAILED = "Failed"

class LicenseTerm(str, enum.Enum):
    MONTHLY = "Monthly"
    ANNUAL = "Annual"
    LIFETIME = "Lifetime"
    OTHER = "Other"

class SystemLicenseStatus(str, enum.Enum):
    """State of this application's own license"""
    VALID = "Valid"
    EXPIRED = "Expired"
    EXCEEDED_LIMIT = "ExceededLimit"
    NOT_ACTIVATED = "NotActivated"

# ============================================================================
# CORE MODEL DEFINITIONS
# ============================================================================

class Computer(Base):
    """Managed endpoint reporting through an agent"""
    __tablename__ = "computers"

    id = Column(String, primary_key=True, default=lambda: new_id("comp"))
    name = Column(String, nullable=False)
    status = Column(Enum(ComputerStatus), nullable=False, default=ComputerStatus.ONLINE)
    os = Column(String, default="")
    ip_address = Column(String, default="")
    last_seen = Column(DateTime, default=datetime.utcnow)

    # Telemetry (percent)
    cpu_usage = Column(Float)
    ram_usage = Column(Float)
    disk_usage = Column(Float)

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    memberships = relationship(
        "GroupMembership",
        back_populates="computer",
        cascade="all, delete",
        order_by="GroupMembership.group_id",
    )
    executions = relationship("ProcedureExecution", back_populates="computer", cascade="all, delete")
    monitor_logs = relationship("MonitorExecutionLog", back_populates="computer", cascade="all, delete")

    @property
    def group_ids(self):
        return [m.group_id for m in self.memberships]


class ComputerGroup(Base):
    """Named set of computers with ordered procedure and monitor associations"""
    __tablename__ = "computer_groups"

    id = Column(String, primary_key=True, default=lambda: new_id("group"))
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    memberships = relationship(
        "GroupMembership",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="GroupMembership.position",
    )
    procedure_links = relationship(
        "AssociatedProcedure",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="AssociatedProcedure.position",
    )
    monitor_links = relationship(
        "AssociatedMonitor",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="AssociatedMonitor.position",
    )

    @property
    def computer_ids(self):
        return [m.computer_id for m in self.memberships]

    @property
    def associated_procedures(self):
        return list(self.procedure_links)

    @property
    def associated_monitors(self):
        return list(self.monitor_links)


class GroupMembership(Base):
    """Single source of the group <-> computer relation"""
    __tablename__ = "group_memberships"

    group_id = Column(String, ForeignKey("computer_groups.id"), primary_key=True)
    computer_id = Column(String, ForeignKey("computers.id"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)

    group = relationship("ComputerGroup", back_populates="memberships")
    computer = relationship("Computer", back_populates="memberships")


class AssociatedProcedure(Base):
    """Procedure linked to a group with its trigger and schedule"""
    __tablename__ = "group_procedures"
    __table_args__ = (UniqueConstraint("group_id", "procedure_id", name="uq_group_procedure"),)

    id = Column(Integer, primary_key=True)
    group_id = Column(String, ForeignKey("computer_groups.id"), nullable=False)
    procedure_id = Column(String, ForeignKey("procedures.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    run_on_new_member = Column(Boolean, default=False)
    schedule = Column(JSON, nullable=False, default=lambda: {"type": "disabled"})

    group = relationship("ComputerGroup", back_populates="procedure_links")
    procedure = relationship("Procedure", back_populates="group_links")


class AssociatedMonitor(Base):
    """Monitor linked to a group with a group-specific schedule"""
    __tablename__ = "group_monitors"
    __table_args__ = (UniqueConstraint("group_id", "monitor_id", name="uq_group_monitor"),)

    id = Column(Integer, primary_key=True)
    group_id = Column(String, ForeignKey("computer_groups.id"), nullable=False)
    monitor_id = Column(String, ForeignKey("monitors.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    schedule = Column(JSON, nullable=False)

    group = relationship("ComputerGroup", back_populates="monitor_links")
    monitor = relationship("Monitor", back_populates="group_links")


class Procedure(Base):
    """Remote script definition"""
    __tablename__ = "procedures"

    id = Column(String, primary_key=True, default=lambda: new_id("proc"))
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    procedure_system_type = Column(
        Enum(ProcedureSystemType), nullable=False, default=ProcedureSystemType.CUSTOM_SCRIPT
    )

    # Script
    script_type = Column(Enum(ScriptType), nullable=False, default=ScriptType.POWERSHELL)
    script_content = Column(Text, default="")
    run_as_user = Column(Boolean, default=False)

    # System type payloads
    windows_update_scope_options = Column(JSON)  # WindowsUpdate only
    software_update_mode = Column(Enum(SoftwareUpdateMode))  # SoftwareUpdate only
    specific_software_to_update = Column(Text)  # comma separated winget ids

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    executions = relationship("ProcedureExecution", back_populates="procedure", cascade="all, delete")
    group_links = relationship("AssociatedProcedure", back_populates="procedure", cascade="all, delete")


class ProcedureExecution(Base):
    """One run of a procedure on one computer"""
    __tablename__ = "procedure_executions"

    id = Column(String, primary_key=True, default=lambda: new_id("exec"))
    procedure_id = Column(String, ForeignKey("procedures.id"), nullable=False, index=True)
    computer_id = Column(String, ForeignKey("computers.id"), nullable=False, index=True)
    computer_name = Column(String)  # snapshot at creation
    status = Column(Enum(ExecutionStatus), nullable=False, default=ExecutionStatus.PENDING)
    start_time = Column(DateTime, default=datetime.utcnow)
    end_time = Column(DateTime)
    logs = Column(Text, default="")
    output = Column(Text)
    run_as_user = Column(Boolean, default=False)

    procedure = relationship("Procedure", back_populates="executions")
    computer = relationship("Computer", back_populates="executions")


class Monitor(Base):
    """Scheduled health check script"""
    __tablename__ = "monitors"

    id = Column(String, primary_key=True, default=lambda: new_id("mon"))
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    script_type = Column(Enum(ScriptType), nullable=False, default=ScriptType.POWERSHELL)
    script_content = Column(Text, nullable=False)  # prints OK: or ALERT: followed by a message
    default_interval_value = Column(Integer, nullable=False, default=5)
    default_interval_unit = Column(Enum(IntervalUnit), nullable=False, default=IntervalUnit.MINUTES)
    send_email_on_alert = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    logs = relationship("MonitorExecutionLog", back_populates="monitor", cascade="all, delete")
    group_links = relationship("AssociatedMonitor", back_populates="monitor", cascade="all, delete")


class MonitorExecutionLog(Base):
    """Result of one monitor check on one computer"""
    __tablename__ = "monitor_execution_logs"

    id = Column(String, primary_key=True, default=lambda: new_id("mlog"))
    monitor_id = Column(String, ForeignKey("monitors.id"), nullable=False, index=True)
    computer_id = Column(String, ForeignKey("computers.id"), index=True)
    computer_name = Column(String)
    timestamp = Column(DateTime, default=datetime.utcnow, index=True)
    status = Column(Enum(MonitorLogStatus), nullable=False)
    message = Column(Text, default="")
    notified = Column(Boolean, default=False)

    monitor = relationship("Monitor", back_populates="logs")
    computer = relationship("Computer", back_populates="monitor_logs")


class CustomCommand(Base):
    """Ad-hoc script sent to a computer (group sends fan out per member)"""
    __tablename__ = "custom_commands"

    id = Column(String, primary_key=True, default=lambda: new_id("cmd"))
    computer_id = Column(String, nullable=False, index=True)
    target_type = Column(Enum(CommandTargetType), nullable=False, default=CommandTargetType.COMPUTER)
    target_id = Column(String, nullable=False)
    command = Column(Text, nullable=False)
    script_type = Column(Enum(ScriptType), nullable=False, default=ScriptType.CMD)
    status = Column(Enum(CommandStatus), nullable=False, default=CommandStatus.PENDING)
    output = Column(Text)
    executed_at = Column(DateTime, default=datetime.utcnow, index=True)


class License(Base):
    """Third-party software license being tracked"""
    __tablename__ = "licenses"

    id = Column(String, primary_key=True, default=lambda: new_id("lic"))
    product_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    website_panel_address = Column(String)
    license_term = Column(Enum(LicenseTerm), nullable=False, default=LicenseTerm.ANNUAL)
    purchase_date = Column(Date)

    # Expiry
    enable_expiry_date = Column(Boolean, default=True)
    expiry_date = Column(Date)
    send_expiry_notification = Column(Boolean, default=False)
    notification_days_before = Column(Integer)

    notes = Column(Text, default="")
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)


class AppSetting(Base):
    """Key/value store for singleton settings (SMTP, AI, system license)"""
    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True)
    key = Column(String, unique=True, nullable=False)
    value = Column(Text, nullable=False)  # JSON document
    description = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
