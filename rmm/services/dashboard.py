"""
Dashboard aggregation: fleet health at a glance.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rmm.models import (
    Computer,
    ComputerStatus,
    ExecutionStatus,
    MonitorExecutionLog,
    MonitorLogStatus,
    ProcedureExecution,
)
from rmm.schemas import DashboardOut
from rmm.services.telemetry import TelemetrySampler

ALERT_WINDOW_DAYS = 30


def _average(values) -> Optional[float]:
    values = [v for v in values if v is not None]
    if not values:
        return None
    return round(sum(values) / len(values), 1)


def get_dashboard(db: Session, telemetry: Optional[TelemetrySampler] = None) -> DashboardOut:
    telemetry = telemetry or TelemetrySampler()
    computers = [telemetry.observe(c) for c in db.scalars(select(Computer)).all()]

    by_status = {status.value: 0 for status in ComputerStatus}
    for computer in computers:
        by_status[computer.status.value] += 1

    execution_counts = dict(
        db.execute(
            select(ProcedureExecution.status, func.count()).group_by(ProcedureExecution.status)
        ).all()
    )
    pending = execution_counts.get(ExecutionStatus.PENDING, 0) + execution_counts.get(ExecutionStatus.RUNNING, 0)

    cutoff = datetime.utcnow() - timedelta(days=ALERT_WINDOW_DAYS)
    alerts = db.scalar(
        select(func.count())
        .select_from(MonitorExecutionLog)
        .where(MonitorExecutionLog.status.in_([MonitorLogStatus.ALERT, MonitorLogStatus.ERROR]))
        .where(MonitorExecutionLog.timestamp >= cutoff)
    ) or 0

    online = [c for c in computers if c.status == ComputerStatus.ONLINE]
    return DashboardOut(
        computers={"total": len(computers), **by_status},
        procedure_executions={
            "success": execution_counts.get(ExecutionStatus.SUCCESS, 0),
            "failed": execution_counts.get(ExecutionStatus.FAILED, 0),
            "pending": pending,
        },
        monitor_alerts_last_30_days=alerts,
        average_cpu_usage=_average(c.cpu_usage for c in online),
        average_ram_usage=_average(c.ram_usage for c in online),
    )
