"""Tests for settings and logging configuration."""

from unittest.mock import Mock

import structlog

from speech_evaluator.config import Settings, configure_structlog


def test_settings_defaults():
    settings = Settings()
    assert settings.evaluation_model == "gpt-4o"
    assert settings.embedding_model == "text-embedding-3-small"
    assert settings.openai_api_key == "test-key-123"


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("SPEECH_EVALUATOR_EVALUATION_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("SPEECH_EVALUATOR_EVALUATION_TEMPERATURE", "0.2")
    settings = Settings()
    assert settings.evaluation_model == "gpt-4o-mini"
    assert settings.evaluation_temperature == 0.2


def test_configure_structlog():
    configure_structlog()
    assert structlog.is_configured()
    structlog.get_logger("speech_evaluator.tests").info("Logging configured", check=True)


def test_generator_configures_logging_when_enabled(monkeypatch, completion_client_factory):
    from speech_evaluator.config import settings
    from speech_evaluator.evaluation import generator as generator_module

    configure = Mock()
    monkeypatch.setattr(generator_module, "configure_structlog", configure)

    generator_module.EvaluationGenerator(completion_client_factory())
    configure.assert_not_called()

    monkeypatch.setattr(settings, "configure_logging", True)
    generator_module.EvaluationGenerator(completion_client_factory())
    configure.assert_called_once_with()
