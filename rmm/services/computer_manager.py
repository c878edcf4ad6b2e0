"""
Computer inventory: add, edit, remove managed computers.
Removing a computer cascades to everything that points at it.
"""

import logging
import random
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, delete as sql_delete
from sqlalchemy.orm import Session

from rmm.models import Computer, ComputerStatus, CommandTargetType, CustomCommand

logger = logging.getLogger(__name__)


class ComputerManager:
    """
    Manages computer lifecycle.
    """

    EDITABLE_FIELDS = ("name", "os", "ip_address", "status", "cpu_usage", "ram_usage", "disk_usage", "last_seen")

    def __init__(self, db: Session):
        self.db = db

    def list_computers(self) -> List[Computer]:
        return list(self.db.scalars(select(Computer).order_by(Computer.created_at, Computer.id)).all())

    def get_computer(self, computer_id: str) -> Optional[Computer]:
        return self.db.get(Computer, computer_id)

    def add_computer(
        self,
        name: str,
        os: str = "",
        ip_address: str = "",
        status: ComputerStatus = ComputerStatus.ONLINE,
    ) -> Tuple[bool, Optional[Computer], str]:
        """
        Register a computer. It starts with no group memberships.

        Returns:
            (success: bool, computer: Computer or None, message: str)
        """
        if not name or not name.strip():
            return False, None, "Computer name is required"

        computer = Computer(
            name=name.strip(),
            os=os,
            ip_address=ip_address,
            status=status,
            last_seen=datetime.utcnow(),
        )
        if status == ComputerStatus.ONLINE:
            computer.cpu_usage = float(random.randint(5, 60))
            computer.ram_usage = float(random.randint(20, 80))
            computer.disk_usage = float(random.randint(10, 90))
        self.db.add(computer)
        self.db.commit()
        logger.info(f"Added computer {computer.id} '{computer.name}' ({status.value})")
        return True, computer, "Computer added"

    def update_computer(self, computer_id: str, **fields) -> Tuple[bool, Optional[Computer], str]:
        computer = self.get_computer(computer_id)
        if not computer:
            return False, None, f"Computer {computer_id} not found"

        for key, value in fields.items():
            if value is None:
                continue
            if key not in self.EDITABLE_FIELDS:
                return False, None, f"Unknown computer field: {key}"
            setattr(computer, key, value)
        self.db.commit()
        logger.info(f"Updated computer {computer_id}: {sorted(k for k, v in fields.items() if v is not None)}")
        return True, computer, "Computer updated"

    def delete_computer(self, computer_id: str) -> Tuple[bool, str]:
        """
        Delete a computer.

        Steps:
        1. Drop its group memberships (group computer_ids follow)
        2. Delete its procedure executions and monitor logs
        3. Delete custom commands sent directly to it

        Returns:
            (success: bool, message: str)
        """
        computer = self.get_computer(computer_id)
        if not computer:
            return False, f"Computer {computer_id} not found"

        group_count = len(computer.memberships)
        execution_count = len(computer.executions)
        log_count = len(computer.monitor_logs)

        result = self.db.execute(
            sql_delete(CustomCommand).where(
                CustomCommand.target_type == CommandTargetType.COMPUTER,
                CustomCommand.computer_id == computer_id,
            )
        )
        self.db.delete(computer)
        self.db.commit()

        logger.info(
            f"Deleted computer {computer_id}: left {group_count} groups, removed {execution_count} executions, "
            f"{log_count} monitor logs, {result.rowcount} commands"
        )
        return True, "Computer deleted"
