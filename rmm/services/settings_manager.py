"""
Singleton settings stored as JSON documents in the app_settings table.
"""

import json
import logging
from datetime import datetime
from typing import Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from rmm.models import AppSetting
from rmm.schemas import AiSettings, SMTPSettings, SystemLicenseInfo

logger = logging.getLogger(__name__)

SMTP_KEY = "smtp"
AI_KEY = "ai"
SYSTEM_LICENSE_KEY = "system_license"

SettingsModel = TypeVar("SettingsModel", bound=BaseModel)


class SettingsManager:
    """Reads and writes SMTP, AI and system license settings."""

    def __init__(self, db: Session):
        self.db = db

    def load(self, key: str, model: Type[SettingsModel]) -> SettingsModel:
        """Stored document for key, or the model's defaults when never saved."""
        row = self._row(key)
        if row is None:
            return model()
        return model.model_validate(json.loads(row.value))

    def save(self, key: str, value: BaseModel, description: Optional[str] = None) -> BaseModel:
        row = self._row(key)
        document = value.model_dump_json()
        if row is None:
            row = AppSetting(key=key, value=document, description=description)
            self.db.add(row)
        else:
            row.value = document
            row.updated_at = datetime.utcnow()
        self.db.commit()
        logger.info(f"Saved {key} settings")
        return value

    def get_smtp_settings(self) -> SMTPSettings:
        return self.load(SMTP_KEY, SMTPSettings)

    def save_smtp_settings(self, settings: SMTPSettings) -> SMTPSettings:
        stored = SMTPSettings.model_validate(settings.model_dump())
        return self.save(SMTP_KEY, stored, "Outgoing mail for alerts and reports")

    def get_ai_settings(self) -> AiSettings:
        return self.load(AI_KEY, AiSettings)

    def save_ai_settings(self, settings: AiSettings) -> AiSettings:
        return self.save(AI_KEY, settings, "AI script generation providers")

    def get_system_license(self) -> SystemLicenseInfo:
        return self.load(SYSTEM_LICENSE_KEY, SystemLicenseInfo)

    def save_system_license(self, info: SystemLicenseInfo) -> SystemLicenseInfo:
        return self.save(SYSTEM_LICENSE_KEY, info, "Activation state of this installation")

    def _row(self, key: str) -> Optional[AppSetting]:
        return self.db.scalars(select(AppSetting).where(AppSetting.key == key)).first()
