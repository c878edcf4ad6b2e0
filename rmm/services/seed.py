"""
Demo data loaded into a fresh store.
"""

import logging
from datetime import date, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rmm.models import (
    AssociatedMonitor,
    AssociatedProcedure,
    Computer,
    ComputerGroup,
    ComputerStatus,
    ExecutionStatus,
    GroupMembership,
    IntervalUnit,
    License,
    LicenseTerm,
    Monitor,
    MonitorExecutionLog,
    MonitorLogStatus,
    Procedure,
    ProcedureExecution,
    ProcedureSystemType,
    ScriptType,
)
from rmm.schemas import AiSettings, SMTPSettings
from rmm.services.settings_manager import SettingsManager

logger = logging.getLogger(__name__)

COMPUTERS = [
    ("comp-1", "Workstation-01", ComputerStatus.ONLINE, "Windows 11 Pro", "192.168.1.101", 0, (25, 60, 40)),
    ("comp-2", "Server-Main", ComputerStatus.ONLINE, "Windows Server 2022", "192.168.1.10", 0, (10, 30, 20)),
    ("comp-3", "Laptop-Dev", ComputerStatus.OFFLINE, "Windows 10 Pro", "192.168.1.102", 24 * 3600, None),
    ("comp-4", "Kiosk-Display", ComputerStatus.ERROR, "Windows 10 IoT", "192.168.1.103", 2 * 3600, (90, 95, 70)),
    ("comp-5", "Finance-PC", ComputerStatus.ONLINE, "Windows 11 Pro", "192.168.1.104", 0, (15, 45, 55)),
]

GROUPS = [
    ("group-1", "Development Team", "Computers used by the development team.", ["comp-1", "comp-3"]),
    ("group-2", "Servers", "All production and staging servers.", ["comp-2", "comp-5"]),
    ("group-3", "Remote Workers", "Laptops for remote employees.", ["comp-3"]),
]

PROCEDURES = [
    ("proc-1", "Disk Cleanup", "Runs standard disk cleanup utility.", ScriptType.CMD, "cleanmgr /sagerun:1"),
    (
        "proc-2",
        "Install Basic Software",
        "Installs common software using PowerShell.",
        ScriptType.POWERSHELL,
        "winget install -e --id VideoLAN.VLC\nwinget install -e --id 7zip.7zip",
    ),
    ("proc-3", "Check Python Version", "Verifies the installed Python version.", ScriptType.PYTHON, "import sys\nprint(sys.version)"),
]

MONITORS = [
    (
        "mon-1",
        "Low Disk Space",
        "Alerts when free space on C: drops below 10%.",
        "$d = Get-PSDrive C\n$pct = $d.Free / ($d.Used + $d.Free) * 100\n"
        "if ($pct -lt 10) { Write-Output \"ALERT: Only $([math]::Round($pct,1))% free on C:\" } "
        "else { Write-Output \"OK: $([math]::Round($pct,1))% free on C:\" }",
        15,
        IntervalUnit.MINUTES,
    ),
    (
        "mon-2",
        "Print Spooler Running",
        "Checks that the Print Spooler service is running.",
        "$s = Get-Service -Name Spooler\n"
        "if ($s.Status -ne 'Running') { Write-Output 'ALERT: Print Spooler is stopped' } "
        "else { Write-Output 'OK: Print Spooler is running' }",
        1,
        IntervalUnit.HOURS,
    ),
]


def seed_demo_data(db: Session) -> bool:
    """Load the demo data set. Does nothing if the store already has computers."""
    if db.scalar(select(func.count()).select_from(Computer)):
        logger.info("Store already populated, skipping demo seed")
        return False

    now = datetime.utcnow()
    for comp_id, name, status, os_name, ip, age_sec, usage in COMPUTERS:
        computer = Computer(
            id=comp_id,
            name=name,
            status=status,
            os=os_name,
            ip_address=ip,
            last_seen=now - timedelta(seconds=age_sec),
            created_at=now,
        )
        if usage:
            computer.cpu_usage, computer.ram_usage, computer.disk_usage = (float(u) for u in usage)
        db.add(computer)

    for proc_id, name, description, script_type, script in PROCEDURES:
        db.add(Procedure(
            id=proc_id,
            name=name,
            description=description,
            procedure_system_type=ProcedureSystemType.CUSTOM_SCRIPT,
            script_type=script_type,
            script_content=script,
            created_at=now,
            updated_at=now,
        ))

    for mon_id, name, description, script, interval, unit in MONITORS:
        db.add(Monitor(
            id=mon_id,
            name=name,
            description=description,
            script_type=ScriptType.POWERSHELL,
            script_content=script,
            default_interval_value=interval,
            default_interval_unit=unit,
            send_email_on_alert=True,
            created_at=now,
            updated_at=now,
        ))
    db.flush()

    for group_id, name, description, members in GROUPS:
        group = ComputerGroup(id=group_id, name=name, description=description, created_at=now)
        group.memberships = [
            GroupMembership(computer_id=comp_id, position=i) for i, comp_id in enumerate(members)
        ]
        db.add(group)
    db.flush()

    db.get(ComputerGroup, "group-1").procedure_links = [
        AssociatedProcedure(procedure_id="proc-2", position=0, run_on_new_member=True, schedule={"type": "disabled"}),
    ]
    db.get(ComputerGroup, "group-2").procedure_links = [
        AssociatedProcedure(
            procedure_id="proc-1",
            position=0,
            run_on_new_member=False,
            schedule={"type": "weekly", "time": "02:00", "day_of_week": 0},
        ),
    ]
    db.get(ComputerGroup, "group-2").monitor_links = [
        AssociatedMonitor(
            monitor_id="mon-1",
            position=0,
            schedule={"type": "customInterval", "interval_value": 15, "interval_unit": "minutes"},
        ),
    ]

    db.add(ProcedureExecution(
        id="exec-1",
        procedure_id="proc-1",
        computer_id="comp-1",
        computer_name="Workstation-01",
        status=ExecutionStatus.SUCCESS,
        start_time=now - timedelta(seconds=3600),
        end_time=now - timedelta(seconds=3500),
        logs="Starting disk cleanup...\nDisk cleanup successful.\nRemoved 1.2GB of temp files.",
        output="Success",
    ))
    db.add(ProcedureExecution(
        id="exec-2",
        procedure_id="proc-2",
        computer_id="comp-2",
        computer_name="Server-Main",
        status=ExecutionStatus.FAILED,
        start_time=now - timedelta(seconds=7200),
        end_time=now - timedelta(seconds=7000),
        logs="Starting software installation...\nFailed to install VideoLAN.VLC. Error code: 1603",
        output="Error: 1603",
    ))

    db.add_all([
        MonitorExecutionLog(
            id="mlog-1", monitor_id="mon-1", computer_id="comp-2", computer_name="Server-Main",
            timestamp=now - timedelta(minutes=15), status=MonitorLogStatus.OK, message="OK: 64.2% free on C:",
        ),
        MonitorExecutionLog(
            id="mlog-2", monitor_id="mon-1", computer_id="comp-5", computer_name="Finance-PC",
            timestamp=now - timedelta(minutes=15), status=MonitorLogStatus.ALERT,
            message="ALERT: Only 7.8% free on C:", notified=True,
        ),
        MonitorExecutionLog(
            id="mlog-3", monitor_id="mon-2", computer_id="comp-4", computer_name="Kiosk-Display",
            timestamp=now - timedelta(hours=3), status=MonitorLogStatus.ERROR,
            message="Agent did not respond", notified=False,
        ),
    ])

    db.add(License(
        id="lic-1",
        product_name="Microsoft 365 Business Standard",
        quantity=25,
        website_panel_address="https://admin.microsoft.com",
        license_term=LicenseTerm.ANNUAL,
        purchase_date=date.today() - timedelta(days=340),
        enable_expiry_date=True,
        expiry_date=date.today() + timedelta(days=25),
        send_expiry_notification=True,
        notification_days_before=30,
        notes="Renews through the reseller portal.",
        is_active=True,
        created_at=now,
        updated_at=now,
    ))
    db.commit()

    settings = SettingsManager(db)
    settings.save_smtp_settings(SMTPSettings())
    settings.save_ai_settings(AiSettings())

    logger.info(
        f"Seeded demo data: {len(COMPUTERS)} computers, {len(GROUPS)} groups, "
        f"{len(PROCEDURES)} procedures, {len(MONITORS)} monitors"
    )
    return True
