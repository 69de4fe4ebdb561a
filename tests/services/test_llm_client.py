"""
Pruebas de la extracción de JSON de las respuestas del LLM
"""
import pytest

from app.services.llm_client import RateLimiter, extract_json


def test_extract_plain_json():
    assert extract_json('{"a": 1}') == {"a": 1}


def test_extract_fenced_json_with_trailing_commas():
    content = '```json\n[{"index": 0, "score": 90,},]\n```'
    assert extract_json(content) == [{"index": 0, "score": 90}]


def test_extract_json_surrounded_by_text():
    content = 'Claro, aquí está:\n{"nivel_experiencia": "mid"}\nSaludos'
    assert extract_json(content) == {"nivel_experiencia": "mid"}


def test_extract_invalid_json():
    with pytest.raises(ValueError):
        extract_json("sin json")


@pytest.mark.asyncio
async def test_rate_limiter_consumes_tokens():
    limiter = RateLimiter(rate=60)
    await limiter.acquire()
    await limiter.acquire()
    assert limiter.tokens < 59
