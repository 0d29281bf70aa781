from chatcommerce.analysis.base import FallbackAnalyzer, MessageAnalyzer, build_analyzer
from chatcommerce.analysis.llm_analyzer import LLMAnalyzer, extract_json
from chatcommerce.analysis.rule_analyzer import RuleBasedAnalyzer

__all__ = [
    "MessageAnalyzer", "FallbackAnalyzer", "build_analyzer",
    "LLMAnalyzer", "RuleBasedAnalyzer", "extract_json",
]
