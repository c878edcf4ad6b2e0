"""
This installation's own license.

Activation is simulated: any non-empty key is accepted. The status is
derived on every read from the key, its expiry and the number of managed
computers, so it reacts to computers being added or removed.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rmm.config import DEFAULT_LICENSED_PC_COUNT
from rmm.models import Computer, SystemLicenseStatus
from rmm.schemas import SystemLicenseInfo, SystemLicenseOut
from rmm.services.settings_manager import SettingsManager

logger = logging.getLogger(__name__)

LICENSE_TERM_DAYS = 365


def derive_status(info: SystemLicenseInfo, pc_count: int, now: Optional[datetime] = None) -> SystemLicenseStatus:
    if not info.license_key:
        return SystemLicenseStatus.NOT_ACTIVATED
    now = now or datetime.utcnow()
    if info.expiry_date and info.expiry_date < now:
        return SystemLicenseStatus.EXPIRED
    if info.licensed_pc_count is not None and pc_count > info.licensed_pc_count:
        return SystemLicenseStatus.EXCEEDED_LIMIT
    return SystemLicenseStatus.VALID


class SystemLicenseManager:

    def __init__(self, db: Session, licensed_pc_count: int = DEFAULT_LICENSED_PC_COUNT):
        self.db = db
        self.settings = SettingsManager(db)
        self.licensed_pc_count = licensed_pc_count

    def get_system_license_info(self) -> SystemLicenseOut:
        info = self.settings.get_system_license()
        pc_count = self.db.scalar(select(func.count()).select_from(Computer)) or 0
        status = derive_status(info, pc_count)
        return SystemLicenseOut(
            **info.model_dump(exclude={"status"}),
            status=status,
            current_pc_count=pc_count,
            is_valid=status == SystemLicenseStatus.VALID,
        )

    def update_system_license_key(self, license_key: str) -> Tuple[bool, Optional[SystemLicenseOut], str]:
        """
        Activate with a new key.

        Returns:
            (success: bool, license info or None, message: str)
        """
        key = (license_key or "").strip()
        if not key:
            return False, None, "License key is required"

        info = SystemLicenseInfo(
            status=SystemLicenseStatus.VALID,
            license_key=key,
            licensed_pc_count=self.licensed_pc_count,
            expiry_date=datetime.utcnow() + timedelta(days=LICENSE_TERM_DAYS),
        )
        self.settings.save_system_license(info)
        result = self.get_system_license_info()
        logger.info(f"System license activated for {info.licensed_pc_count} PCs, status {result.status.value}")
        return True, result, "License key updated"
