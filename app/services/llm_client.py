"""
Cliente del gateway LLM (API compatible con OpenAI)

Limita la concurrencia y las peticiones por minuto, y extrae el JSON de la
respuesta aunque venga envuelto en markdown o con texto alrededor.
"""
import asyncio
import json
import re
import time
from functools import lru_cache
from typing import Any, Dict, List, Optional
from openai import AsyncOpenAI
from loguru import logger

from app.core.config import settings

_FENCE = re.compile(r"```(?:json)?\s*")
_TRAILING_COMMA = re.compile(r",\s*([\]}])")
_JSON_BLOCK = re.compile(r"\[[\s\S]*\]|\{[\s\S]*\}")


class RateLimiter:
    """Token bucket de `rate` peticiones por minuto"""

    def __init__(self, rate: int):
        self.rate = rate
        self.tokens = float(rate)
        self.updated = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self):
        now = time.monotonic()
        self.tokens = min(self.rate, self.tokens + (now - self.updated) * self.rate / 60.0)
        self.updated = now

    async def acquire(self):
        async with self._lock:
            self._refill()
            if self.tokens < 1:
                await asyncio.sleep((1 - self.tokens) * 60.0 / self.rate)
                self._refill()
            self.tokens -= 1


def extract_json(content: str) -> Any:
    """JSON de la respuesta del modelo; ValueError si no hay uno válido"""
    text = _FENCE.sub("", content.strip()).replace("```", "").strip()
    text = _TRAILING_COMMA.sub(r"\1", text)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    match = _JSON_BLOCK.search(text)
    if match:
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            pass
    logger.error("Respuesta JSON inválida del LLM: {}", text[:500])
    raise ValueError("El LLM no devolvió un JSON válido")


class LLMClient:
    """Chat completions con límites de tasa y concurrencia"""

    def __init__(self):
        self.model = settings.llm_model
        self.temperature = settings.llm_temperature
        self._client = AsyncOpenAI(
            api_key=settings.llm_api_key or "not-configured",
            base_url=settings.llm_base_url,
            timeout=settings.llm_timeout,
        )
        self._rate_limiter = RateLimiter(settings.llm_rate_limit)
        self._semaphore = asyncio.Semaphore(settings.llm_max_concurrency)
        logger.info(
            "LLMClient listo: model={} max_concurrency={} rate_limit={}/min",
            self.model, settings.llm_max_concurrency, settings.llm_rate_limit,
        )

    async def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        await self._rate_limiter.acquire()
        started = time.monotonic()
        async with self._semaphore:
            try:
                response = await self._client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature if temperature is None else temperature,
                    max_tokens=max_tokens,
                )
            except Exception as exc:
                logger.error("Fallo en la llamada al LLM: {}", exc)
                raise

        content = response.choices[0].message.content if response and response.choices else None
        if not content:
            raise ValueError("El LLM devolvió una respuesta vacía")
        logger.debug("LLM respondió en {:.1f}s ({} caracteres)", time.monotonic() - started, len(content))
        return content.strip()

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Any:
        """Mensaje system + user; devuelve el JSON parseado"""
        content = await self.chat(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature,
            max_tokens=max_tokens,
        )
        return extract_json(content)


@lru_cache
def get_llm_client() -> LLMClient:
    return LLMClient()
