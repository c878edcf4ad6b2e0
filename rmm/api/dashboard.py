from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rmm.api.deps import get_telemetry
from rmm.database import get_db
from rmm.schemas import DashboardOut
from rmm.services.dashboard import get_dashboard
from rmm.services.telemetry import TelemetrySampler

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(db: Session = Depends(get_db), telemetry: TelemetrySampler = Depends(get_telemetry)):
    return get_dashboard(db, telemetry)


@router.get("/schema")
def schema():
    """Entity names served by this API, for admin tooling."""
    return {
        "collections": [
            "computers",
            "groups",
            "procedures",
            "executions",
            "monitors",
            "commands",
            "licenses",
            "system-license",
            "settings",
        ]
    }
