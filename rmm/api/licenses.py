"""
License endpoints: tracked third-party licenses and this installation's
own system license.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rmm import logic
from rmm.database import get_db
from rmm.schemas import (
    LicenseCreate,
    LicenseOut,
    LicenseReport,
    LicenseUpdate,
    SystemLicenseKeyUpdate,
    SystemLicenseOut,
)

router = APIRouter(prefix="/licenses", tags=["licenses"])
system_router = APIRouter(prefix="/system-license", tags=["system-license"])


@router.get("", response_model=List[LicenseOut])
def list_licenses(search: Optional[str] = None, db: Session = Depends(get_db)):
    return [logic.license_view(lic) for lic in logic.list_licenses(db, search)]


@router.post("", response_model=LicenseOut, status_code=201)
def add_license(body: LicenseCreate, db: Session = Depends(get_db)):
    return logic.license_view(logic.add_license(db, **body.model_dump()))


@router.post("/report", response_model=LicenseReport)
def send_license_report(db: Session = Depends(get_db)):
    return logic.send_license_report(db)


@router.get("/{license_id}", response_model=LicenseOut)
def get_license(license_id: str, db: Session = Depends(get_db)):
    return logic.license_view(logic.get_license(license_id, db))


@router.put("/{license_id}", response_model=LicenseOut)
def update_license(license_id: str, body: LicenseUpdate, db: Session = Depends(get_db)):
    fields = {name: getattr(body, name) for name in body.model_fields_set}
    return logic.license_view(logic.update_license(license_id, db, **fields))


@router.delete("/{license_id}")
def delete_license(license_id: str, db: Session = Depends(get_db)):
    logic.delete_license(license_id, db)
    return {"id": license_id, "message": "License deleted"}


@system_router.get("", response_model=SystemLicenseOut)
def get_system_license(db: Session = Depends(get_db)):
    return logic.get_system_license_info(db)


@system_router.put("", response_model=SystemLicenseOut)
def update_system_license_key(body: SystemLicenseKeyUpdate, db: Session = Depends(get_db)):
    return logic.update_system_license_key(body.license_key, db)
