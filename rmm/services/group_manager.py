"""
Computer groups: membership, associated procedures and monitors.

Membership is stored once (GroupMembership); Computer.group_ids is read
from the same rows, so both sides always agree. Computers that join a
group while Online run every associated procedure flagged
run_on_new_member, in association order.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from rmm.models import (
    AssociatedMonitor,
    AssociatedProcedure,
    Computer,
    ComputerGroup,
    ComputerStatus,
    GroupMembership,
    IntervalUnit,
    Monitor,
    Procedure,
    ProcedureExecution,
    ScheduleIntervalUnit,
    ScheduleType,
)
from rmm.schemas import AssociatedMonitorConfig, AssociatedProcedureConfig, ScheduleConfig
from rmm.services.execution_manager import ExecutionManager

logger = logging.getLogger(__name__)


def monitor_default_schedule(monitor: Monitor) -> ScheduleConfig:
    """Group schedule used when a monitor is linked without one."""
    value = monitor.default_interval_value or 1
    unit = monitor.default_interval_unit
    if unit == IntervalUnit.DAYS:
        value, schedule_unit = value * 24, ScheduleIntervalUnit.HOURS
    elif unit == IntervalUnit.HOURS:
        schedule_unit = ScheduleIntervalUnit.HOURS
    else:
        schedule_unit = ScheduleIntervalUnit.MINUTES
    return ScheduleConfig(type=ScheduleType.CUSTOM_INTERVAL, interval_value=value, interval_unit=schedule_unit)


class GroupManager:
    """
    Manages groups and keeps membership-driven executions in step.
    """

    def __init__(self, db: Session, runner=None):
        """
        Args:
            db: SQLAlchemy session
            runner: ExecutionRunner receiving executions triggered by new members
        """
        self.db = db
        self.runner = runner
        self.executions = ExecutionManager(db)

    def list_groups(self) -> List[ComputerGroup]:
        return list(self.db.scalars(select(ComputerGroup).order_by(ComputerGroup.created_at, ComputerGroup.id)).all())

    def get_group(self, group_id: str) -> Optional[ComputerGroup]:
        return self.db.get(ComputerGroup, group_id)

    # ========================================================================
    # CREATE / UPDATE / DELETE
    # ========================================================================

    def create_group(
        self,
        name: str,
        description: str = "",
        computer_ids: Sequence[str] = (),
        associated_procedures: Sequence[AssociatedProcedureConfig] = (),
        associated_monitors: Sequence[AssociatedMonitorConfig] = (),
    ) -> Tuple[bool, Optional[ComputerGroup], str]:
        """
        Create a group. Initial members count as new members.

        Returns:
            (success: bool, group: ComputerGroup or None, message: str)
        """
        if not name or not name.strip():
            return False, None, "Group name is required"

        ok, msg = self._validate_references(computer_ids, associated_procedures, associated_monitors)
        if not ok:
            return False, None, msg

        group = ComputerGroup(name=name.strip(), description=description or "")
        self.db.add(group)
        self._set_procedure_links(group, associated_procedures)
        self._set_monitor_links(group, associated_monitors)
        added = self._set_members(group, computer_ids)
        self.db.flush()
        triggered = self._trigger_new_member_procedures(group, added)
        self.db.commit()

        logger.info(f"Created group {group.id} '{group.name}' with {len(group.memberships)} computers")
        self._dispatch(triggered)
        return True, group, "Group created"

    def update_group(
        self,
        group_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        computer_ids: Optional[Sequence[str]] = None,
        associated_procedures: Optional[Sequence[AssociatedProcedureConfig]] = None,
        associated_monitors: Optional[Sequence[AssociatedMonitorConfig]] = None,
    ) -> Tuple[bool, Optional[ComputerGroup], str]:
        """
        Update a group. Each list given replaces the current one, order included.

        Steps:
        1. Validate referenced computers, procedures and monitors exist
        2. Apply name/description and association lists
        3. Diff membership; queue run-on-new-member procedures for Online newcomers
        4. Commit, then hand new executions to the runner

        Returns:
            (success: bool, group: ComputerGroup or None, message: str)
        """
        group = self.get_group(group_id)
        if not group:
            return False, None, f"Group {group_id} not found"

        ok, msg = self._validate_references(computer_ids or (), associated_procedures or (), associated_monitors or ())
        if not ok:
            return False, None, msg

        if name is not None:
            if not name.strip():
                return False, None, "Group name is required"
            group.name = name.strip()
        if description is not None:
            group.description = description
        if associated_procedures is not None:
            self._set_procedure_links(group, associated_procedures)
        if associated_monitors is not None:
            self._set_monitor_links(group, associated_monitors)

        added: List[Computer] = []
        if computer_ids is not None:
            added = self._set_members(group, computer_ids)
        self.db.flush()
        triggered = self._trigger_new_member_procedures(group, added)
        self.db.commit()

        logger.info(f"Updated group {group_id}: {len(added)} new members, {len(triggered)} executions queued")
        self._dispatch(triggered)
        return True, group, "Group updated"

    def delete_group(self, group_id: str) -> Tuple[bool, str]:
        group = self.get_group(group_id)
        if not group:
            return False, f"Group {group_id} not found"
        self.db.delete(group)
        self.db.commit()
        logger.info(f"Deleted group {group_id}")
        return True, "Group deleted"

    def move_associated_procedure(self, group_id: str, procedure_id: str, direction: str) -> Tuple[bool, Optional[ComputerGroup], str]:
        """Swap an associated procedure with its neighbour. Moving past either end is a no-op."""
        group = self.get_group(group_id)
        if not group:
            return False, None, f"Group {group_id} not found"
        if direction not in ("up", "down"):
            return False, None, f"Invalid direction: {direction}"

        links = list(group.procedure_links)
        index = next((i for i, link in enumerate(links) if link.procedure_id == procedure_id), None)
        if index is None:
            return False, None, f"Procedure {procedure_id} is not associated with group {group_id}"

        target = index - 1 if direction == "up" else index + 1
        if 0 <= target < len(links):
            links[index].position, links[target].position = links[target].position, links[index].position
            self.db.commit()
            self.db.refresh(group)
        return True, group, "Procedure order updated"

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _validate_references(self, computer_ids, procedure_configs, monitor_configs) -> Tuple[bool, str]:
        for computer_id in computer_ids:
            if self.db.get(Computer, computer_id) is None:
                return False, f"Computer {computer_id} not found"
        for config in procedure_configs:
            if self.db.get(Procedure, config.procedure_id) is None:
                return False, f"Procedure {config.procedure_id} not found"
        for config in monitor_configs:
            if self.db.get(Monitor, config.monitor_id) is None:
                return False, f"Monitor {config.monitor_id} not found"
        return True, "ok"

    def _set_members(self, group: ComputerGroup, computer_ids: Sequence[str]) -> List[Computer]:
        """Replace membership keeping the given order; returns computers that joined."""
        existing: Dict[str, GroupMembership] = {m.computer_id: m for m in group.memberships}
        ordered: List[GroupMembership] = []
        added: List[Computer] = []
        seen = set()
        for computer_id in computer_ids:
            if computer_id in seen:
                continue
            seen.add(computer_id)
            membership = existing.pop(computer_id, None)
            if membership is None:
                computer = self.db.get(Computer, computer_id)
                membership = GroupMembership(computer=computer)
                added.append(computer)
            ordered.append(membership)
        for position, membership in enumerate(ordered):
            membership.position = position
        group.memberships = ordered
        return added

    def _set_procedure_links(self, group: ComputerGroup, configs: Sequence[AssociatedProcedureConfig]):
        existing: Dict[str, AssociatedProcedure] = {link.procedure_id: link for link in group.procedure_links}
        ordered = []
        for position, config in enumerate(configs):
            link = existing.pop(config.procedure_id, None) or AssociatedProcedure(procedure_id=config.procedure_id)
            link.position = position
            link.run_on_new_member = config.run_on_new_member
            link.schedule = config.schedule.to_json()
            ordered.append(link)
        group.procedure_links = ordered

    def _set_monitor_links(self, group: ComputerGroup, configs: Sequence[AssociatedMonitorConfig]):
        existing: Dict[str, AssociatedMonitor] = {link.monitor_id: link for link in group.monitor_links}
        ordered = []
        for position, config in enumerate(configs):
            schedule = config.schedule or monitor_default_schedule(self.db.get(Monitor, config.monitor_id))
            link = existing.pop(config.monitor_id, None) or AssociatedMonitor(monitor_id=config.monitor_id)
            link.position = position
            link.schedule = schedule.to_json()
            ordered.append(link)
        group.monitor_links = ordered

    def _trigger_new_member_procedures(self, group: ComputerGroup, added: Sequence[Computer]) -> List[ProcedureExecution]:
        triggered: List[ProcedureExecution] = []
        auto_links = [link for link in group.procedure_links if link.run_on_new_member]
        if not auto_links:
            return triggered

        for computer in added:
            if computer.status != ComputerStatus.ONLINE:
                logger.info(f"Computer {computer.id} joined group {group.id} while {computer.status.value}; no procedures run")
                continue
            for link in auto_links:
                procedure = link.procedure or self.db.get(Procedure, link.procedure_id)
                execution = self.executions.create_pending(
                    procedure, computer, reason=f"Triggered by joining group '{group.name}'."
                )
                triggered.append(execution)
        self.db.flush()
        return triggered

    def _dispatch(self, executions: Sequence[ProcedureExecution]):
        if self.runner is None:
            return
        for execution in executions:
            self.runner.submit(execution.id)
