"""
Settings and AI assistant endpoints.

Endpoints:
- GET/PUT /settings/smtp: outgoing mail for alerts and reports
- GET/PUT /settings/ai: AI provider configuration
- POST /ai/generate-script: draft a script from a description
- POST /ai/improve-procedure: suggest a safer version of a script
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rmm import logic
from rmm.database import get_db
from rmm.schemas import (
    AiSettings,
    GenerateScriptInput,
    GenerateScriptOutput,
    ImproveProcedureInput,
    ImproveProcedureOutput,
    SMTPSettings,
    SMTPSettingsUpdate,
)

router = APIRouter(prefix="/settings", tags=["settings"])
ai_router = APIRouter(prefix="/ai", tags=["ai"])


@router.get("/smtp", response_model=SMTPSettings)
def get_smtp_settings(db: Session = Depends(get_db)):
    return logic.get_smtp_settings(db)


@router.put("/smtp", response_model=SMTPSettings)
def save_smtp_settings(body: SMTPSettingsUpdate, db: Session = Depends(get_db)):
    return logic.save_smtp_settings(body, db)


@router.get("/ai", response_model=AiSettings)
def get_ai_settings(db: Session = Depends(get_db)):
    return logic.get_ai_settings(db)


@router.put("/ai", response_model=AiSettings)
def save_ai_settings(body: AiSettings, db: Session = Depends(get_db)):
    return logic.save_ai_settings(body, db)


@ai_router.post("/generate-script", response_model=GenerateScriptOutput)
def generate_script(body: GenerateScriptInput, db: Session = Depends(get_db)):
    return logic.generate_script(body, db)


@ai_router.post("/improve-procedure", response_model=ImproveProcedureOutput)
def improve_procedure(body: ImproveProcedureInput, db: Session = Depends(get_db)):
    return logic.improve_procedure(body, db)
