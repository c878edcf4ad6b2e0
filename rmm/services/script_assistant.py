"""
AI script assistant.

Generates new scripts from a description and suggests safer versions of
existing procedures from their execution logs. Requests go to the first
enabled provider through an OpenAI-compatible chat completions endpoint;
the model is asked for a JSON object which is validated before use.
"""

import json
import logging
from typing import Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from rmm.config import AI_REQUEST_TIMEOUT_SEC
from rmm.exceptions import AiProviderError, AiUnavailableError
from rmm.schemas import (
    AiProviderConfig,
    AiSettings,
    GenerateScriptInput,
    GenerateScriptOutput,
    ImproveProcedureInput,
    ImproveProcedureOutput,
)

logger = logging.getLogger(__name__)

OutputModel = TypeVar("OutputModel", bound=BaseModel)

PROVIDER_DEFAULTS = {
    "openai": ("https://api.openai.com/v1", "gpt-4o-mini"),
    "googleai": ("https://generativelanguage.googleapis.com/v1beta/openai", "gemini-1.5-flash"),
}

SYSTEM_PROMPT = (
    "You are an expert Windows system administrator writing scripts for a remote "
    "monitoring and management tool. Always answer with a single JSON object."
)

GENERATE_PROMPT = """Write a {script_type} script for the following task.

Task:
{description}
{context_block}
The script runs unattended on managed computers. Include error handling and
avoid destructive actions unless the task requires them.

Answer with JSON: {{"generated_script": "<script>", "explanation": "<what it does>"}}"""

IMPROVE_PROMPT = """You will analyze the execution logs of a procedure and suggest improvements to the script,
including safety checks, to help prevent unintended negative impacts on managed computers.

Procedure Script:
{procedure_script}

Execution Logs:
{execution_logs}

Suggest an improved script with enhanced safety checks and explain the improvements made.
Consider edge cases and error conditions, and add appropriate error handling.

Answer with JSON: {{"improved_script": "<script>", "explanation": "<improvements and safety checks>"}}"""


class ScriptAssistant:
    """Talks to the configured AI provider on behalf of procedure authors."""

    def __init__(self, settings: AiSettings, timeout: int = AI_REQUEST_TIMEOUT_SEC, session=None):
        self.settings = settings
        self.timeout = timeout
        self.http = session or requests

    def generate_script(self, data: GenerateScriptInput) -> GenerateScriptOutput:
        context_block = f"\nAdditional context:\n{data.context}\n" if data.context else ""
        prompt = GENERATE_PROMPT.format(
            script_type=data.script_type.value,
            description=data.description,
            context_block=context_block,
        )
        result = self._complete(prompt, GenerateScriptOutput)
        if not result.generated_script.strip():
            raise AiProviderError("AI provider returned an empty script")
        return result

    def improve_procedure(self, data: ImproveProcedureInput) -> ImproveProcedureOutput:
        prompt = IMPROVE_PROMPT.format(
            procedure_script=data.procedure_script,
            execution_logs=data.execution_logs or "(no executions recorded)",
        )
        result = self._complete(prompt, ImproveProcedureOutput)
        if not result.improved_script.strip():
            raise AiProviderError("AI provider returned an empty script")
        return result

    def _provider(self) -> AiProviderConfig:
        if not self.settings.global_generation_enabled:
            raise AiUnavailableError("AI script generation is disabled in settings")
        provider = self.settings.active_provider()
        if provider is None:
            raise AiUnavailableError("No AI provider is enabled")
        return provider

    def _endpoint(self, provider: AiProviderConfig):
        default_url, default_model = PROVIDER_DEFAULTS.get(provider.provider_type, (None, None))
        base_url = (provider.base_url or default_url or "").rstrip("/")
        model = provider.model or default_model
        if not base_url:
            raise AiUnavailableError(f"AI provider '{provider.name}' has no base URL")
        if not model:
            raise AiUnavailableError(f"AI provider '{provider.name}' has no model")
        return f"{base_url}/chat/completions", model

    def _complete(self, prompt: str, output_model: Type[OutputModel]) -> OutputModel:
        provider = self._provider()
        url, model = self._endpoint(provider)

        headers = {"Content-Type": "application/json"}
        if provider.api_key:
            headers["Authorization"] = f"Bearer {provider.api_key}"
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "response_format": {"type": "json_object"},
        }

        logger.info(f"AI request to provider '{provider.name}' ({provider.provider_type}, model={model})")
        try:
            response = self.http.post(url, headers=headers, json=payload, timeout=self.timeout)
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
        except requests.RequestException as e:
            logger.error(f"AI provider '{provider.name}' request failed: {e}")
            raise AiProviderError(f"AI provider request failed: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise AiProviderError(f"Unexpected AI provider response: {e}") from e

        return self._parse(content, output_model)

    @staticmethod
    def _parse(content: Optional[str], output_model: Type[OutputModel]) -> OutputModel:
        text = (content or "").strip()
        # Some models wrap JSON in a markdown fence
        if text.startswith("```"):
            text = text.strip("`")
            if text.startswith("json"):
                text = text[4:]
        try:
            return output_model.model_validate(json.loads(text))
        except (json.JSONDecodeError, ValidationError) as e:
            raise AiProviderError(f"AI provider returned malformed output: {e}") from e
