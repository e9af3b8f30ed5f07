"""Pytest configuration and fixtures"""
import json

import pytest

from quizforge.core.config import Settings, get_settings
from quizforge.core.llm import ScriptedTextModel
from quizforge.core.record_shape import RecordShape
from quizforge.core.strict_output import StrictOutputClient


VOLCANO_RECORDS = [
    {"question": "Why do volcanoes erupt?", "answer": "Pressure from magma and gas."},
    {"question": "What is magma?", "answer": "Molten rock beneath the surface."},
]


@pytest.fixture(autouse=True)
def isolate_openai_env(monkeypatch):
    """Tests never see a real key or a developer's .env overrides."""
    for key in ("OPENAI_API_KEY", "OPENAI_MODEL", "OPENAI_BASE_URL", "QUIZ_MAX_ATTEMPTS"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False)
    monkeypatch.setitem(Settings.model_config, "env_file", None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def qa_shape():
    return RecordShape.of("question", "answer")


@pytest.fixture
def volcano_json():
    return json.dumps(VOLCANO_RECORDS)


@pytest.fixture
def make_client():
    """Build a StrictOutputClient over a scripted model; returns (client, model)."""
    def _make(responses, **options):
        model = ScriptedTextModel(responses)
        return StrictOutputClient(model, **options), model
    return _make
