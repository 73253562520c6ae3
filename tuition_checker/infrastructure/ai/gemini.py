"""Narrative summaries of billing data from the Gemini REST API."""
from __future__ import annotations

import json
import logging
from typing import Any, Sequence

import requests

from tuition_checker.domain.models import BillingRecord
from tuition_checker.domain.results import AIInsight
from tuition_checker.errors import SummarizerError

logger = logging.getLogger(__name__)

API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_MODEL = "gemini-2.5-pro"
SAMPLE_SIZE = 50

DISABLED_INSIGHT = AIInsight(
    summary="Análise por IA desativada.",
    anomalies=(),
    recommendations=("Configure GEMINI_API_KEY para habilitar a análise.",),
    financial_trend="Indisponível",
)

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "summary": {"type": "STRING", "description": "Resumo da saúde financeira."},
        "anomalies": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Lista de anomalias encontradas.",
        },
        "recommendations": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "Recomendações estratégicas.",
        },
        "financialTrend": {"type": "STRING", "description": "Tendência financeira observada."},
    },
    "required": ["summary", "anomalies", "recommendations", "financialTrend"],
}


def build_prompt(records: Sequence[BillingRecord], sample_size: int = SAMPLE_SIZE) -> str:
    sample = [
        {"name": r.student_name, "billed": r.billed, "min": r.minimum, "diff": r.diff_abs}
        for r in records[:sample_size]
    ]
    return f"""Analyze the following student billing data from an educational institution.
The data includes the student name, the billed amount (with scholarships), the minimum required amount, and the difference.

Data Context:
- Total students analyzed: {len(records)}
- Samples provided: {json.dumps(sample, ensure_ascii=False)}

Provide a professional financial analysis in Portuguese. Focus on:
1. A summary of the overall financial health regarding scholarships.
2. Any suspicious anomalies (e.g., extremely high differences or negative values).
3. Actionable recommendations for the financial department.
4. A brief comment on the trend of scholarship impacts.
"""


def _extract_text(payload: Any) -> str:
    try:
        parts = payload["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError) as exc:
        raise SummarizerError("Resposta da IA sem conteúdo.") from exc
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


class DisabledSummarizer:
    def summarize(self, records: Sequence[BillingRecord]) -> AIInsight:
        return DISABLED_INSIGHT


class GeminiSummarizer:
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout: float = 60.0,
        sample_size: int = SAMPLE_SIZE,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._sample_size = sample_size

    def summarize(self, records: Sequence[BillingRecord]) -> AIInsight:
        body = {
            "contents": [{"parts": [{"text": build_prompt(records, self._sample_size)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }
        try:
            resp = requests.post(
                API_URL.format(model=self._model),
                params={"key": self._api_key},
                json=body,
                timeout=self._timeout,
            )
            resp.raise_for_status()
            text = _extract_text(resp.json()) or "{}"
            data = json.loads(text)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Gemini analysis failed: %s", exc)
            raise SummarizerError("Falha ao gerar insights da IA.") from exc
        if not isinstance(data, dict):
            raise SummarizerError("Falha ao gerar insights da IA.")
        return AIInsight.from_dict(data)


def make_summarizer(
    api_key: str | None,
    model: str = DEFAULT_MODEL,
    timeout: float = 60.0,
    sample_size: int = SAMPLE_SIZE,
) -> DisabledSummarizer | GeminiSummarizer:
    if not api_key:
        return DisabledSummarizer()
    return GeminiSummarizer(api_key, model=model, timeout=timeout, sample_size=sample_size)
