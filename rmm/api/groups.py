"""
Computer group endpoints.

Updating a group's computer list can start procedures on the computers
that joined; those executions are handed to the execution runner.
"""

from typing import List, Literal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rmm import logic
from rmm.api.deps import get_execution_runner
from rmm.database import get_db
from rmm.schemas import GroupCreate, GroupOut, GroupUpdate

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("", response_model=List[GroupOut])
def list_groups(db: Session = Depends(get_db)):
    return logic.list_groups(db)


@router.post("", response_model=GroupOut, status_code=201)
def create_group(body: GroupCreate, db: Session = Depends(get_db), runner=Depends(get_execution_runner)):
    group = logic.create_group(
        db,
        runner,
        name=body.name,
        description=body.description,
        computer_ids=body.computer_ids,
        associated_procedures=body.associated_procedures,
        associated_monitors=body.associated_monitors,
    )
    return GroupOut.model_validate(group)


@router.get("/{group_id}", response_model=GroupOut)
def get_group(group_id: str, db: Session = Depends(get_db)):
    return logic.get_group(group_id, db)


@router.put("/{group_id}", response_model=GroupOut)
def update_group(group_id: str, body: GroupUpdate, db: Session = Depends(get_db), runner=Depends(get_execution_runner)):
    fields = {name: getattr(body, name) for name in body.model_fields_set}
    group = logic.update_group(group_id, db, runner, **fields)
    return GroupOut.model_validate(group)


@router.delete("/{group_id}")
def delete_group(group_id: str, db: Session = Depends(get_db)):
    logic.delete_group(group_id, db)
    return {"id": group_id, "message": "Group deleted"}


@router.post("/{group_id}/procedures/{procedure_id}/move", response_model=GroupOut)
def move_associated_procedure(
    group_id: str,
    procedure_id: str,
    direction: Literal["up", "down"],
    db: Session = Depends(get_db),
):
    group = logic.move_associated_procedure(group_id, procedure_id, direction, db)
    return GroupOut.model_validate(group)
