"""
Procedure execution records.

Creates Pending executions and answers history queries. Outcomes are
written by the execution runner, never here.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select, or_, and_
from sqlalchemy.orm import Session

from rmm.models import Computer, ExecutionStatus, Procedure, ProcedureExecution


class ExecutionManager:
    """Creates and queries ProcedureExecution rows."""

    HISTORY_WINDOW_DAYS = 30

    def __init__(self, db: Session):
        self.db = db

    def create_pending(
        self,
        procedure: Procedure,
        computer: Computer,
        reason: Optional[str] = None,
    ) -> ProcedureExecution:
        """
        Add a Pending execution of procedure on computer (not committed).

        computer_name and run_as_user are snapshotted so later edits to the
        computer or procedure do not rewrite history.
        """
        logs = f"Execution started for {procedure.name} on {computer.name}..."
        if reason:
            logs = f"{reason}\n{logs}"
        execution = ProcedureExecution(
            procedure_id=procedure.id,
            computer_id=computer.id,
            computer_name=computer.name,
            status=ExecutionStatus.PENDING,
            start_time=datetime.utcnow(),
            logs=logs,
            run_as_user=bool(procedure.run_as_user),
        )
        self.db.add(execution)
        return execution

    def get_execution(self, execution_id: str) -> Optional[ProcedureExecution]:
        return self.db.get(ProcedureExecution, execution_id)

    def list_executions(
        self,
        procedure_id: Optional[str] = None,
        computer_id: Optional[str] = None,
        status: Optional[ExecutionStatus] = None,
    ) -> List[ProcedureExecution]:
        stmt = select(ProcedureExecution)
        if procedure_id:
            stmt = stmt.where(ProcedureExecution.procedure_id == procedure_id)
        if computer_id:
            stmt = stmt.where(ProcedureExecution.computer_id == computer_id)
        if status:
            stmt = stmt.where(ProcedureExecution.status == status)
        stmt = stmt.order_by(ProcedureExecution.start_time.desc())
        return list(self.db.scalars(stmt).all())

    def list_recent_for_procedure(self, procedure_id: str, days: int = HISTORY_WINDOW_DAYS) -> List[ProcedureExecution]:
        """Executions of a procedure that ended (or started, if still open) within the window."""
        cutoff = datetime.utcnow() - timedelta(days=days)
        stmt = (
            select(ProcedureExecution)
            .where(ProcedureExecution.procedure_id == procedure_id)
            .where(
                or_(
                    ProcedureExecution.end_time >= cutoff,
                    and_(ProcedureExecution.end_time.is_(None), ProcedureExecution.start_time >= cutoff),
                )
            )
            .order_by(ProcedureExecution.start_time.desc())
        )
        return list(self.db.scalars(stmt).all())
