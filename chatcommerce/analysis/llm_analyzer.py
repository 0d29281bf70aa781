"""LLM-backed message analyzer using the OpenAI chat completions API."""

import asyncio
import json
import logging
import re
from typing import Any, Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from chatcommerce.errors import AnalysisError
from chatcommerce.prompts.system_prompts import build_analysis_prompt
from chatcommerce.schemas.analysis_schema import MessageAnalysis
from chatcommerce.schemas.business_schema import BusinessConfig

logger = logging.getLogger(__name__)


def extract_json(text: Optional[str]) -> Optional[dict[str, Any]]:
    """
    Extract the first JSON object from model output.

    Handles code fences and models that add text around the object.
    Returns None when no decodable object is present.
    """
    if not text:
        return None

    text = text.strip()
    text = re.sub(r"^```(?:json)?\s*", "", text, flags=re.IGNORECASE)
    text = re.sub(r"\s*```$", "", text)

    match = re.search(r"\{.*\}", text, flags=re.DOTALL)
    if not match:
        return None

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


class LLMAnalyzer:
    """
    Delegates message analysis to a chat model.

    Any API error, timeout or unusable output is raised as AnalysisError
    so the caller can fall back to rule-based analysis.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        temperature: float = 0.1,
        max_tokens: int = 500,
        timeout: float = 8.0,
    ) -> None:
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    async def _complete(self, text: str, business: BusinessConfig) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": build_analysis_prompt(business)},
                {"role": "user", "content": text},
            ],
        )
        try:
            return response.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError) as exc:
            raise AnalysisError(f"LLM response carried no message: {exc!r}") from exc

    async def analyze(self, text: str, business: BusinessConfig) -> MessageAnalysis:
        try:
            content = await asyncio.wait_for(self._complete(text, business), self.timeout)
        except asyncio.TimeoutError:
            raise AnalysisError(f"LLM analysis timed out after {self.timeout}s") from None
        except OpenAIError as exc:
            raise AnalysisError(f"LLM request failed: {exc}") from exc

        data = extract_json(content)
        if data is None:
            raise AnalysisError("LLM returned no JSON object")
        try:
            analysis = MessageAnalysis.model_validate(data)
        except ValidationError as exc:
            raise AnalysisError(f"LLM output failed validation: {exc}") from exc

        logger.debug(
            "LLM analysis: intent=%s confidence=%.2f", analysis.intent.value, analysis.confidence
        )
        return analysis
