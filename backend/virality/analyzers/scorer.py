"""传播力评分器"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from virality.analyzers.llm_client import LLMClient
from virality.analyzers.llm_validators import validate_virality_response
from prompts.virality_prompts import (
    VIRALITY_SYSTEM_PROMPT,
    VIRALITY_REPAIR_SYSTEM_PROMPT,
    build_virality_user_prompt,
    build_virality_repair_prompt,
)

METRIC_KEYS = (
    "predicted_likes",
    "predicted_shares",
    "predicted_comments",
    "optimal_posting_time",
    "hashtags",
)


@dataclass
class ViralityVerdict:
    """一次评分的结果"""
    overall_score: int
    insights: List[Dict[str, Any]] = field(default_factory=list)


class ViralityScorer:
    """使用LLM为内容打出整体与分平台传播力分数"""

    def __init__(self, llm: LLMClient, content_max_length: Optional[int] = None):
        self.llm = llm
        self.content_max_length = content_max_length

    async def score(
        self,
        content: str,
        content_type: str,
        platforms: List[str],
        target_audience: Dict[str, Any],
    ) -> ViralityVerdict:
        if self.content_max_length and len(content) > self.content_max_length:
            content = content[: self.content_max_length] + "..."

        prompt = build_virality_user_prompt(content, content_type, platforms, target_audience)
        response = await self.llm.analyze_json_with_repair(
            prompt=prompt,
            system_prompt=VIRALITY_SYSTEM_PROMPT,
            repair_system_prompt=VIRALITY_REPAIR_SYSTEM_PROMPT,
            repair_user_prompt_builder=build_virality_repair_prompt,
            validator=lambda data: validate_virality_response(data, platforms),
            temperature=0.4,
        )
        return ViralityVerdict(
            overall_score=response["overall_virality_score"],
            insights=[self._to_insight(entry) for entry in response["platforms"]],
        )

    def _to_insight(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "platform": entry["platform"],
            "virality_score": entry["virality_score"],
            "metrics": {key: entry[key] for key in METRIC_KEYS if key in entry},
            "recommendations": entry.get("recommendations", []),
        }
