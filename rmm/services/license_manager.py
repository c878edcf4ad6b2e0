"""
Third-party software license tracking.

Expiry fields are normalised on every write: Lifetime licenses never
expire, and notification settings only survive when there is an expiry
date to notify about.
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from rmm.models import License, LicenseTerm
from rmm.services.settings_manager import SettingsManager

logger = logging.getLogger(__name__)

LICENSE_FIELDS = (
    "product_name",
    "quantity",
    "website_panel_address",
    "license_term",
    "purchase_date",
    "enable_expiry_date",
    "expiry_date",
    "send_expiry_notification",
    "notification_days_before",
    "notes",
    "is_active",
)
EXPIRY_WARNING_DAYS = 30
DEFAULT_NOTIFICATION_DAYS = 30


def license_status_text(license: License, today: Optional[date] = None) -> str:
    """Inactive, Expired, 'Expires in Nd' inside the warning window, else Active."""
    if not license.is_active:
        return "Inactive"
    if license.enable_expiry_date and license.expiry_date:
        today = today or date.today()
        if license.expiry_date < today:
            return "Expired"
        days_left = (license.expiry_date - today).days
        if days_left <= EXPIRY_WARNING_DAYS:
            return f"Expires in {days_left}d"
    return "Active"


def normalize_license(license: License) -> Tuple[bool, str]:
    license.enable_expiry_date = bool(license.enable_expiry_date)
    license.send_expiry_notification = bool(license.send_expiry_notification)
    license.notes = license.notes or ""
    if license.license_term == LicenseTerm.LIFETIME:
        license.enable_expiry_date = False

    if not license.enable_expiry_date:
        license.expiry_date = None
    elif license.license_term in (LicenseTerm.ANNUAL, LicenseTerm.MONTHLY) and not license.expiry_date:
        return False, "Expiry date is required for Annual/Monthly licenses when expiry is enabled"

    if not (license.enable_expiry_date and license.expiry_date):
        license.send_expiry_notification = False
    if license.send_expiry_notification:
        days = license.notification_days_before or DEFAULT_NOTIFICATION_DAYS
        if not 1 <= days <= 30:
            return False, "Notification days must be between 1 and 30"
        license.notification_days_before = days
    else:
        license.notification_days_before = None
    return True, "ok"


class LicenseManager:
    """
    Manages tracked software licenses and the emailed report.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_licenses(self, search: Optional[str] = None) -> List[License]:
        licenses = list(self.db.scalars(select(License).order_by(License.product_name, License.id)).all())
        if not search or not search.strip():
            return licenses
        term = search.strip().lower()
        return [
            lic for lic in licenses
            if term in lic.product_name.lower() or (lic.notes and term in lic.notes.lower())
        ]

    def get_license(self, license_id: str) -> Optional[License]:
        return self.db.get(License, license_id)

    def add_license(self, **data) -> Tuple[bool, Optional[License], str]:
        if not (data.get("product_name") or "").strip():
            return False, None, "Product name is required"

        license = License(**{k: v for k, v in data.items() if k in LICENSE_FIELDS})
        license.product_name = license.product_name.strip()
        if license.license_term is None:
            license.license_term = LicenseTerm.ANNUAL
        if license.enable_expiry_date is None:
            license.enable_expiry_date = True
        if license.is_active is None:
            license.is_active = True
        ok, msg = normalize_license(license)
        if not ok:
            return False, None, msg

        now = datetime.utcnow()
        license.created_at = now
        license.updated_at = now
        self.db.add(license)
        self.db.commit()
        logger.info(f"Added license {license.id} '{license.product_name}' ({license.license_term.value})")
        return True, license, "License added"

    def update_license(self, license_id: str, **data) -> Tuple[bool, Optional[License], str]:
        license = self.get_license(license_id)
        if not license:
            return False, None, f"License {license_id} not found"

        for key, value in data.items():
            if key not in LICENSE_FIELDS:
                return False, None, f"Unknown license field: {key}"
            # Explicit nulls are meaningful for the optional date and text fields
            if value is None and key in ("product_name", "quantity", "license_term", "enable_expiry_date", "is_active"):
                continue
            setattr(license, key, value)
        ok, msg = normalize_license(license)
        if not ok:
            self.db.rollback()
            return False, None, msg

        license.updated_at = datetime.utcnow()
        self.db.commit()
        logger.info(f"Updated license {license_id}")
        return True, license, "License updated"

    def delete_license(self, license_id: str) -> Tuple[bool, str]:
        license = self.get_license(license_id)
        if not license:
            return False, f"License {license_id} not found"
        self.db.delete(license)
        self.db.commit()
        logger.info(f"Deleted license {license_id}")
        return True, "License deleted"

    def send_license_report(self) -> Tuple[bool, Optional[dict], str]:
        """
        Email a summary of all licenses to the SMTP default recipient (simulated).

        Returns:
            (success: bool, {recipient, license_count, summary} or None, message: str)
        """
        smtp = SettingsManager(self.db).get_smtp_settings()
        if not smtp.default_to_email:
            return False, None, "Default recipient email is not configured in SMTP settings"

        licenses = self.list_licenses()
        summary = (
            f"Report contains {len(licenses)} license(s). "
            "Data includes Product Name, Quantity, Term, Expiry, Status."
        )
        logger.info(f"License report for {len(licenses)} licenses sent to {smtp.default_to_email} (simulated)")
        return True, {"recipient": smtp.default_to_email, "license_count": len(licenses), "summary": summary}, "Report sent"
