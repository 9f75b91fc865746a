"""Validation helpers for LLM outputs."""
from typing import Any, List, Tuple


def _is_int_in_range(value: Any, low: int = 0, high: int = 100) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and low <= value <= high


def validate_virality_response(data: Any, platforms: List[str]) -> Tuple[bool, str]:
    if not isinstance(data, dict):
        return False, "Root must be an object."
    if not _is_int_in_range(data.get("overall_virality_score")):
        return False, '"overall_virality_score" must be an integer in [0,100].'
    entries = data.get("platforms")
    if not isinstance(entries, list):
        return False, '"platforms" must be a list.'
    if len(entries) != len(platforms):
        return False, f'"platforms" must contain exactly {len(platforms)} items.'

    seen = set()
    for i, item in enumerate(entries, start=1):
        if not isinstance(item, dict):
            return False, f"Platform item {i} must be an object."
        platform = item.get("platform")
        if platform not in platforms:
            return False, f'Platform item {i} has unknown platform "{platform}"; expected one of {platforms}.'
        if platform in seen:
            return False, f'Platform "{platform}" appears more than once.'
        seen.add(platform)
        if not _is_int_in_range(item.get("virality_score")):
            return False, f'Platform item {i} must have integer "virality_score" in [0,100].'
        for key in ("predicted_likes", "predicted_shares", "predicted_comments"):
            value = item.get(key, 0)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                return False, f'Platform item {i} must have non-negative integer "{key}".'
        hashtags = item.get("hashtags", [])
        if not isinstance(hashtags, list) or len(hashtags) > 5:
            return False, f'Platform item {i} must have at most 5 "hashtags".'
        for tag in hashtags:
            if not isinstance(tag, str) or not tag.startswith("#"):
                return False, f'Platform item {i} has a hashtag not starting with "#".'
        recommendations = item.get("recommendations")
        if not isinstance(recommendations, list) or not recommendations:
            return False, f'Platform item {i} must have a non-empty "recommendations" list.'
        if len(recommendations) > 4:
            return False, f"Platform item {i} has too many recommendations."
        for rec in recommendations:
            if not isinstance(rec, str) or not rec.strip():
                return False, f"Platform item {i} has an empty recommendation."
    return True, ""
