from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rmm import logic
from rmm.database import get_db
from rmm.schemas import CommandCreate, CommandOut

router = APIRouter(prefix="/commands", tags=["commands"])


@router.post("", response_model=List[CommandOut], status_code=201)
def send_command(body: CommandCreate, db: Session = Depends(get_db)):
    """Send a command to a computer, or to each online member of a group."""
    return logic.send_command(db, body.target_type, body.target_id, body.command, body.script_type)


@router.get("", response_model=List[CommandOut])
def get_command_history(computer_id: Optional[str] = None, db: Session = Depends(get_db)):
    return logic.get_command_history(db, computer_id)
