"""AI分析模块"""
from virality.analyzers.llm_client import LLMClient
from virality.analyzers.scorer import ViralityScorer, ViralityVerdict

__all__ = [
    "LLMClient",
    "ViralityScorer",
    "ViralityVerdict",
]
