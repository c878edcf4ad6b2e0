"""
AI script assistant: gating, provider request shape and output validation.
The HTTP layer is replaced with a mock session.
"""

import json
from unittest.mock import Mock

import pytest
import requests

from rmm.exceptions import AiProviderError, AiUnavailableError
from rmm.models import ScriptType
from rmm.schemas import AiProviderConfig, AiSettings, GenerateScriptInput, ImproveProcedureInput
from rmm.services.script_assistant import ScriptAssistant
from rmm.services.settings_manager import SettingsManager


def chat_response(content):
    response = Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = {"choices": [{"message": {"content": content}}]}
    return response


def enabled_settings(**provider):
    config = {"name": "OpenAI", "provider_type": "openai", "api_key": "sk-test", "is_enabled": True}
    config.update(provider)
    return AiSettings(global_generation_enabled=True, provider_configs=[AiProviderConfig(**config)])


class TestGating:

    def test_disabled_globally(self):
        settings = enabled_settings()
        settings.global_generation_enabled = False
        with pytest.raises(AiUnavailableError):
            ScriptAssistant(settings, session=Mock()).generate_script(GenerateScriptInput(description="x"))

    def test_no_enabled_provider(self):
        settings = AiSettings(provider_configs=[AiProviderConfig(name="Off", is_enabled=False)])
        http = Mock()
        with pytest.raises(AiUnavailableError):
            ScriptAssistant(settings, session=http).generate_script(GenerateScriptInput(description="x"))
        http.post.assert_not_called()

    def test_custom_provider_needs_base_url(self):
        settings = enabled_settings(provider_type="custom", model="llama3")
        with pytest.raises(AiUnavailableError):
            ScriptAssistant(settings, session=Mock()).generate_script(GenerateScriptInput(description="x"))


class TestGenerate:

    def test_request_and_parsed_output(self):
        http = Mock()
        http.post.return_value = chat_response(json.dumps({
            "generated_script": "Get-Service | Where-Object Status -eq 'Stopped'",
            "explanation": "Lists stopped services.",
        }))

        result = ScriptAssistant(enabled_settings(), session=http).generate_script(
            GenerateScriptInput(description="List stopped services", script_type=ScriptType.POWERSHELL)
        )

        assert result.generated_script.startswith("Get-Service")
        url = http.post.call_args.args[0]
        kwargs = http.post.call_args.kwargs
        assert url == "https://api.openai.com/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
        assert kwargs["json"]["model"] == "gpt-4o-mini"
        assert kwargs["json"]["response_format"] == {"type": "json_object"}
        assert "List stopped services" in kwargs["json"]["messages"][1]["content"]

    def test_fenced_json_is_accepted(self):
        http = Mock()
        http.post.return_value = chat_response('```json\n{"generated_script": "dir", "explanation": ""}\n```')
        result = ScriptAssistant(enabled_settings(), session=http).generate_script(GenerateScriptInput(description="x"))
        assert result.generated_script == "dir"

    def test_empty_script_is_an_error(self):
        http = Mock()
        http.post.return_value = chat_response('{"generated_script": "  ", "explanation": "none"}')
        with pytest.raises(AiProviderError):
            ScriptAssistant(enabled_settings(), session=http).generate_script(GenerateScriptInput(description="x"))

    def test_malformed_output(self):
        http = Mock()
        http.post.return_value = chat_response("not json at all")
        with pytest.raises(AiProviderError):
            ScriptAssistant(enabled_settings(), session=http).generate_script(GenerateScriptInput(description="x"))

    def test_transport_error(self):
        http = Mock()
        http.post.side_effect = requests.ConnectionError("refused")
        with pytest.raises(AiProviderError):
            ScriptAssistant(enabled_settings(), session=http).generate_script(GenerateScriptInput(description="x"))


def test_improve_procedure_uses_custom_base_url():
    http = Mock()
    http.post.return_value = chat_response(json.dumps({
        "improved_script": "if (Test-Path C:\\temp) { Remove-Item C:\\temp\\* -WhatIf }",
        "explanation": "Checks the path first.",
    }))
    settings = enabled_settings(provider_type="custom", base_url="http://llm.local/v1/", model="llama3", api_key=None)

    result = ScriptAssistant(settings, session=http).improve_procedure(
        ImproveProcedureInput(procedure_script="Remove-Item C:\\temp\\*", execution_logs="Access denied")
    )

    assert "Test-Path" in result.improved_script
    assert http.post.call_args.args[0] == "http://llm.local/v1/chat/completions"
    assert "Authorization" not in http.post.call_args.kwargs["headers"]


def test_settings_round_trip(db):
    manager = SettingsManager(db)
    assert manager.get_ai_settings().provider_configs == []

    manager.save_ai_settings(enabled_settings())

    stored = SettingsManager(db).get_ai_settings()
    assert stored.active_provider().name == "OpenAI"
