"""
Analyzer protocol, degraded-mode fallback and analyzer selection.

Usage:
    analyzer = build_analyzer(settings.analyzer, load_rules())
    analysis = await analyzer.analyze("how much is the diffuser?", business)
"""

import asyncio
import logging
import os
from typing import Optional, Protocol

from openai import AsyncOpenAI

from chatcommerce.analysis.llm_analyzer import LLMAnalyzer
from chatcommerce.analysis.rule_analyzer import RuleBasedAnalyzer
from chatcommerce.config import AnalyzerConfig
from chatcommerce.errors import AnalysisError
from chatcommerce.rules.loader import RuleSet
from chatcommerce.schemas.analysis_schema import MessageAnalysis
from chatcommerce.schemas.business_schema import BusinessConfig

logger = logging.getLogger(__name__)


class MessageAnalyzer(Protocol):
    async def analyze(self, text: str, business: BusinessConfig) -> MessageAnalysis: ...


class FallbackAnalyzer:
    """
    Runs the primary analyzer and degrades to the fallback on failure.

    The primary never blocks longer than ``timeout_sec`` when one is
    given. Degraded results are flagged with ``degraded=True``.
    """

    def __init__(
        self,
        primary: MessageAnalyzer,
        fallback: RuleBasedAnalyzer,
        timeout_sec: Optional[float] = None,
    ) -> None:
        self.primary = primary
        self.fallback = fallback
        self.timeout_sec = timeout_sec

    async def analyze(self, text: str, business: BusinessConfig) -> MessageAnalysis:
        try:
            if self.timeout_sec is None:
                return await self.primary.analyze(text, business)
            return await asyncio.wait_for(self.primary.analyze(text, business), self.timeout_sec)
        except AnalysisError as exc:
            logger.warning("Analyzer failed, using rule-based fallback: %s", exc)
        except asyncio.TimeoutError:
            logger.warning("Analyzer timed out after %ss, using rule-based fallback", self.timeout_sec)

        analysis = await self.fallback.analyze(text, business)
        return analysis.model_copy(update={"degraded": True})


def build_analyzer(config: AnalyzerConfig, rules: RuleSet) -> MessageAnalyzer:
    """Create the analyzer selected by ``ANALYZER_MODE``."""
    rule_analyzer = RuleBasedAnalyzer(rules)
    if config.mode != "llm":
        logger.info("Using rule-based message analyzer")
        return rule_analyzer

    if not os.getenv("OPENAI_API_KEY"):
        logger.warning("ANALYZER_MODE=llm but OPENAI_API_KEY is not set, using rule-based analyzer")
        return rule_analyzer

    llm = LLMAnalyzer(
        client=AsyncOpenAI(),
        model=config.llm_model,
        temperature=config.llm_temperature,
        max_tokens=config.llm_max_tokens,
        timeout=config.llm_timeout_sec,
    )
    logger.info("Using LLM message analyzer (%s) with rule-based fallback", config.llm_model)
    return FallbackAnalyzer(llm, rule_analyzer)
