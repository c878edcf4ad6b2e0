"""
Monitor definitions and their execution logs.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from rmm.models import Monitor, MonitorExecutionLog

logger = logging.getLogger(__name__)

MONITOR_FIELDS = (
    "name",
    "description",
    "script_type",
    "script_content",
    "default_interval_value",
    "default_interval_unit",
    "send_email_on_alert",
)


class MonitorManager:
    """Manages monitors. Logs are read only; nothing here runs a monitor."""

    def __init__(self, db: Session):
        self.db = db

    def list_monitors(self) -> List[Monitor]:
        return list(self.db.scalars(select(Monitor).order_by(Monitor.created_at, Monitor.id)).all())

    def get_monitor(self, monitor_id: str) -> Optional[Monitor]:
        return self.db.get(Monitor, monitor_id)

    def add_monitor(self, **data) -> Tuple[bool, Optional[Monitor], str]:
        if not (data.get("name") or "").strip():
            return False, None, "Monitor name is required"
        if not (data.get("script_content") or "").strip():
            return False, None, "Monitor script content is required"

        monitor = Monitor(**{k: v for k, v in data.items() if k in MONITOR_FIELDS})
        monitor.name = monitor.name.strip()
        now = datetime.utcnow()
        monitor.created_at = now
        monitor.updated_at = now
        self.db.add(monitor)
        self.db.commit()
        logger.info(f"Added monitor {monitor.id} '{monitor.name}'")
        return True, monitor, "Monitor added"

    def update_monitor(self, monitor_id: str, **data) -> Tuple[bool, Optional[Monitor], str]:
        monitor = self.get_monitor(monitor_id)
        if not monitor:
            return False, None, f"Monitor {monitor_id} not found"

        for key, value in data.items():
            if value is None:
                continue
            if key not in MONITOR_FIELDS:
                return False, None, f"Unknown monitor field: {key}"
            setattr(monitor, key, value)
        monitor.updated_at = datetime.utcnow()
        self.db.commit()
        logger.info(f"Updated monitor {monitor_id}")
        return True, monitor, "Monitor updated"

    def delete_monitor(self, monitor_id: str) -> Tuple[bool, str]:
        """Delete a monitor with its logs and every group association."""
        monitor = self.get_monitor(monitor_id)
        if not monitor:
            return False, f"Monitor {monitor_id} not found"

        log_count = len(monitor.logs)
        link_count = len(monitor.group_links)
        self.db.delete(monitor)
        self.db.commit()
        logger.info(f"Deleted monitor {monitor_id}: removed {log_count} logs, {link_count} group associations")
        return True, "Monitor deleted"

    def list_monitor_logs(
        self, monitor_id: Optional[str] = None, computer_id: Optional[str] = None
    ) -> List[MonitorExecutionLog]:
        stmt = select(MonitorExecutionLog)
        if monitor_id:
            stmt = stmt.where(MonitorExecutionLog.monitor_id == monitor_id)
        if computer_id:
            stmt = stmt.where(MonitorExecutionLog.computer_id == computer_id)
        stmt = stmt.order_by(MonitorExecutionLog.timestamp.desc())
        return list(self.db.scalars(stmt).all())
