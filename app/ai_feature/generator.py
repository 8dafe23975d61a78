"""
SQL generation through the OpenAI chat API.

The model is asked for a JSON object {sql, explanation, confidence, warnings};
anything that cannot be turned into that shape is a GenerationError.
"""

import json
import logging
from functools import lru_cache
from typing import Any, List, Optional

from openai import AsyncOpenAI

from app.core.config import settings
from app.core.exceptions import GenerationError
from app.core.schemas import BackendType, SQLGenerationResult

logger = logging.getLogger(__name__)

DIALECT_HINTS = {
    BackendType.SQLSERVER.value: "SQL Server: use TOP to limit results and GETDATE() for the current time",
    BackendType.POSTGRESQL.value: "PostgreSQL: use LIMIT to limit results, NOW() for the current time and PostgreSQL functions",
}


def build_system_prompt(backend_type: str, schema_text: str = "") -> str:
    dialect_hint = DIALECT_HINTS.get(backend_type, f"{backend_type}: use its native syntax")
    schema_block = f"Available tables and columns:\n{schema_text}\n" if schema_text else ""

    return f"""You convert questions written in plain language into safe, read-only SQL.

Database type: {backend_type}
{schema_block}
Rules:
1. Produce a single SELECT statement only. No INSERT, UPDATE, DELETE or DDL.
2. Follow the dialect. {dialect_hint}.
3. Filter with WHERE clauses where the question implies it.
4. Join tables when the question spans several of them.
5. Limit potentially large result sets.
6. Only reference tables and columns that are likely to exist.
7. Rate your confidence between 0 and 1 based on how clear the question is.
8. Add warnings for anything ambiguous.

Respond with JSON in exactly this shape:
{{"sql": "SELECT ...", "explanation": "This query ...", "confidence": 0.95, "warnings": []}}"""


def _clamp_confidence(value: Any) -> float:
    try:
        confidence = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    if confidence != confidence:  # NaN
        return 0.0
    return max(0.0, min(1.0, confidence))


def _as_warnings(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return [str(value)]


def parse_generation_payload(content: Optional[str]) -> SQLGenerationResult:
    if not content:
        raise GenerationError("Failed to generate SQL: empty response from model")

    try:
        payload = json.loads(content)
    except json.JSONDecodeError as error:
        raise GenerationError(f"Failed to generate SQL: response is not JSON ({error})")

    if not isinstance(payload, dict):
        raise GenerationError("Failed to generate SQL: response is not a JSON object")

    return SQLGenerationResult(
        sql=str(payload.get("sql") or "").strip(),
        explanation=str(payload.get("explanation") or ""),
        confidence=_clamp_confidence(payload.get("confidence")),
        warnings=_as_warnings(payload.get("warnings")),
    )


class SQLGenerator:
    """Thin wrapper around the chat completion call."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ):
        self._client = client
        self.model = model or settings.OPENAI_MODEL
        self.temperature = (
            temperature if temperature is not None else settings.OPENAI_TEMPERATURE
        )

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY or None,
                timeout=settings.OPENAI_TIMEOUT_SECONDS,
            )
        return self._client

    async def generate(
        self, natural_query: str, backend_type: str, schema_text: str = ""
    ) -> SQLGenerationResult:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": build_system_prompt(backend_type, schema_text)},
                    {"role": "user", "content": natural_query},
                ],
                response_format={"type": "json_object"},
                temperature=self.temperature,
            )
            content = response.choices[0].message.content
        except Exception as error:
            logger.error(f"SQL generation call failed: {error}")
            raise GenerationError(f"Failed to generate SQL: {error}") from error

        return parse_generation_payload(content)


@lru_cache
def get_sql_generator() -> SQLGenerator:
    return SQLGenerator()
