"""
Computer inventory endpoints.

Online computers are returned with simulated live telemetry.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rmm import logic
from rmm.api.deps import get_telemetry
from rmm.database import get_db
from rmm.schemas import ComputerCreate, ComputerOut, ComputerUpdate, ExecutionOut
from rmm.services.telemetry import TelemetrySampler

router = APIRouter(prefix="/computers", tags=["computers"])


@router.get("", response_model=List[ComputerOut])
def list_computers(db: Session = Depends(get_db), telemetry: TelemetrySampler = Depends(get_telemetry)):
    return [telemetry.observe(c) for c in logic.list_computers(db)]


@router.post("", response_model=ComputerOut, status_code=201)
def add_computer(body: ComputerCreate, db: Session = Depends(get_db)):
    computer = logic.add_computer(db, **body.model_dump())
    return ComputerOut.model_validate(computer)


@router.get("/{computer_id}", response_model=ComputerOut)
def get_computer(computer_id: str, db: Session = Depends(get_db), telemetry: TelemetrySampler = Depends(get_telemetry)):
    return telemetry.observe(logic.get_computer(computer_id, db))


@router.put("/{computer_id}", response_model=ComputerOut)
def update_computer(computer_id: str, body: ComputerUpdate, db: Session = Depends(get_db)):
    computer = logic.update_computer(computer_id, db, **body.model_dump(exclude_unset=True))
    return ComputerOut.model_validate(computer)


@router.delete("/{computer_id}")
def delete_computer(computer_id: str, db: Session = Depends(get_db)):
    logic.delete_computer(computer_id, db)
    return {"id": computer_id, "message": "Computer deleted"}


@router.get("/{computer_id}/executions", response_model=List[ExecutionOut])
def list_computer_executions(computer_id: str, db: Session = Depends(get_db)):
    return logic.list_executions(db, computer_id=computer_id)
