"""
Procedure endpoints: definitions, execution and execution history.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rmm import logic
from rmm.api.deps import get_execution_runner
from rmm.database import get_db
from rmm.models import ExecutionStatus
from rmm.schemas import (
    ExecuteProcedureRequest,
    ExecuteProcedureResult,
    ExecutionOut,
    ImproveProcedureOutput,
    ProcedureCreate,
    ProcedureOut,
    ProcedureUpdate,
)

router = APIRouter(prefix="/procedures", tags=["procedures"])
executions_router = APIRouter(prefix="/executions", tags=["executions"])


@router.get("", response_model=List[ProcedureOut])
def list_procedures(db: Session = Depends(get_db)):
    return logic.list_procedures(db)


@router.post("", response_model=ProcedureOut, status_code=201)
def add_procedure(body: ProcedureCreate, db: Session = Depends(get_db)):
    procedure = logic.add_procedure(db, **body.model_dump())
    return ProcedureOut.model_validate(procedure)


@router.get("/{procedure_id}", response_model=ProcedureOut)
def get_procedure(procedure_id: str, db: Session = Depends(get_db)):
    return logic.get_procedure(procedure_id, db)


@router.put("/{procedure_id}", response_model=ProcedureOut)
def update_procedure(procedure_id: str, body: ProcedureUpdate, db: Session = Depends(get_db)):
    fields = {name: getattr(body, name) for name in body.model_fields_set}
    procedure = logic.update_procedure(procedure_id, db, **fields)
    return ProcedureOut.model_validate(procedure)


@router.delete("/{procedure_id}")
def delete_procedure(procedure_id: str, db: Session = Depends(get_db)):
    logic.delete_procedure(procedure_id, db)
    return {"id": procedure_id, "message": "Procedure deleted"}


@router.post("/{procedure_id}/execute", response_model=ExecuteProcedureResult, status_code=202)
def execute_procedure(
    procedure_id: str,
    body: ExecuteProcedureRequest,
    db: Session = Depends(get_db),
    runner=Depends(get_execution_runner),
):
    executions, skipped = logic.execute_procedure(procedure_id, body.computer_ids, db, runner)
    return ExecuteProcedureResult(
        executions=[ExecutionOut.model_validate(e) for e in executions],
        skipped_computer_ids=skipped,
    )


@router.get("/{procedure_id}/executions", response_model=List[ExecutionOut])
def list_procedure_executions(procedure_id: str, days: int = Query(30, ge=1), db: Session = Depends(get_db)):
    return logic.list_procedure_executions(procedure_id, db, days)


@router.post("/{procedure_id}/improve", response_model=ImproveProcedureOutput)
def improve_procedure(procedure_id: str, db: Session = Depends(get_db)):
    return logic.improve_stored_procedure(procedure_id, db)


@executions_router.get("", response_model=List[ExecutionOut])
def list_executions(
    procedure_id: Optional[str] = None,
    computer_id: Optional[str] = None,
    status: Optional[ExecutionStatus] = None,
    db: Session = Depends(get_db),
):
    return logic.list_executions(db, procedure_id, computer_id, status)


@executions_router.get("/{execution_id}", response_model=ExecutionOut)
def get_execution(execution_id: str, db: Session = Depends(get_db)):
    return logic.get_execution(execution_id, db)
