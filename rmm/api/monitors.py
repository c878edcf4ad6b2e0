from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rmm import logic
from rmm.database import get_db
from rmm.schemas import MonitorCreate, MonitorLogOut, MonitorOut, MonitorUpdate

router = APIRouter(prefix="/monitors", tags=["monitors"])


@router.get("", response_model=List[MonitorOut])
def list_monitors(db: Session = Depends(get_db)):
    return logic.list_monitors(db)


@router.post("", response_model=MonitorOut, status_code=201)
def add_monitor(body: MonitorCreate, db: Session = Depends(get_db)):
    monitor = logic.add_monitor(db, **body.model_dump())
    return MonitorOut.model_validate(monitor)


# Declared before /{monitor_id} so "logs" is not taken for an id
@router.get("/logs", response_model=List[MonitorLogOut])
def list_monitor_logs(
    monitor_id: Optional[str] = None,
    computer_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return logic.list_monitor_logs(db, monitor_id, computer_id)


@router.get("/{monitor_id}", response_model=MonitorOut)
def get_monitor(monitor_id: str, db: Session = Depends(get_db)):
    return logic.get_monitor(monitor_id, db)


@router.put("/{monitor_id}", response_model=MonitorOut)
def update_monitor(monitor_id: str, body: MonitorUpdate, db: Session = Depends(get_db)):
    monitor = logic.update_monitor(monitor_id, db, **body.model_dump(exclude_unset=True))
    return MonitorOut.model_validate(monitor)


@router.delete("/{monitor_id}")
def delete_monitor(monitor_id: str, db: Session = Depends(get_db)):
    logic.delete_monitor(monitor_id, db)
    return {"id": monitor_id, "message": "Monitor deleted"}


@router.get("/{monitor_id}/logs", response_model=List[MonitorLogOut])
def list_logs_for_monitor(monitor_id: str, db: Session = Depends(get_db)):
    return logic.list_monitor_logs(db, monitor_id=monitor_id)
