"""
Custom (ad-hoc) commands.

Commands are recorded Pending when sent. Delivery is simulated: the next
history read settles every outstanding command to Success or Failed.
"""

import logging
import random
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from rmm.config import COMMAND_SUCCESS_RATE
from rmm.models import (
    CommandStatus,
    CommandTargetType,
    Computer,
    ComputerGroup,
    ComputerStatus,
    CustomCommand,
    ScriptType,
)

logger = logging.getLogger(__name__)

OUTSTANDING = (CommandStatus.PENDING, CommandStatus.SENT)


class CommandManager:
    """
    Sends custom commands and keeps their history.
    """

    def __init__(self, db: Session, success_rate: float = COMMAND_SUCCESS_RATE, rng: Optional[random.Random] = None):
        self.db = db
        self.success_rate = success_rate
        self.rng = rng or random.Random()

    def send_command(
        self,
        target_type: CommandTargetType,
        target_id: str,
        command: str,
        script_type: ScriptType = ScriptType.CMD,
    ) -> Tuple[bool, Optional[List[CustomCommand]], str]:
        """
        Record a command for a computer, or for every Online member of a group.

        Returns:
            (success: bool, commands: list or None, message: str)
        """
        if not command or not command.strip():
            return False, None, "Command content cannot be empty"

        if target_type == CommandTargetType.GROUP:
            group = self.db.get(ComputerGroup, target_id)
            if not group:
                return False, None, f"Group {target_id} not found"
            targets = [m.computer for m in group.memberships if m.computer.status == ComputerStatus.ONLINE]
            if not targets:
                return False, None, f"Group '{group.name}' has no online computers"
        else:
            computer = self.db.get(Computer, target_id)
            if not computer:
                return False, None, f"Computer {target_id} not found"
            if computer.status != ComputerStatus.ONLINE:
                return False, None, f"Computer '{computer.name}' is {computer.status.value}"
            targets = [computer]

        now = datetime.utcnow()
        commands = []
        for computer in targets:
            record = CustomCommand(
                computer_id=computer.id,
                target_type=target_type,
                target_id=target_id,
                command=command,
                script_type=script_type,
                status=CommandStatus.PENDING,
                executed_at=now,
            )
            self.db.add(record)
            commands.append(record)
        self.db.commit()

        logger.info(f"Command sent to {target_type.value} {target_id} ({len(commands)} computers)")
        return True, commands, "Command sent"

    def get_command_history(self, computer_id: Optional[str] = None) -> List[CustomCommand]:
        """Newest first. Outstanding commands are settled before they are returned."""
        stmt = select(CustomCommand)
        if computer_id:
            stmt = stmt.where(CustomCommand.computer_id == computer_id)
        stmt = stmt.order_by(CustomCommand.executed_at.desc(), CustomCommand.id.desc())
        commands = list(self.db.scalars(stmt).all())

        settled = 0
        for record in commands:
            if record.status in OUTSTANDING:
                self._settle(record)
                settled += 1
        if settled:
            self.db.commit()
            logger.info(f"Settled {settled} outstanding commands")
        return commands

    def _settle(self, record: CustomCommand):
        computer = self.db.get(Computer, record.computer_id)
        name = computer.name if computer else "N/A"
        if self.rng.random() < self.success_rate:
            record.status = CommandStatus.SUCCESS
            record.output = f"Command executed successfully on {name}. Output: OK"
        else:
            record.status = CommandStatus.FAILED
            record.output = f"Failed to execute on {name}. Error: Simulated execution failure."
            logger.warning(f"Command {record.id} failed on {name}")
