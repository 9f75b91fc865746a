"""LLM客户端封装"""
import asyncio
import json
import logging
from typing import Optional, Dict, Any, List, Callable, Tuple

from openai import OpenAI

from virality.config import Settings

logger = logging.getLogger(__name__)


class LLMClient:
    """OpenAI 兼容的 LLM API 客户端"""

    def __init__(self, settings: Settings, client: Optional[OpenAI] = None):
        self.model = settings.llm_model
        self.client = client or OpenAI(
            api_key=settings.llm_api_key,
            base_url=settings.llm_api_base_url or None,
            timeout=settings.llm_timeout,
            max_retries=2,
        )

    def _chat_sync(self, payload: Dict[str, Any]) -> str:
        response = self.client.chat.completions.create(**payload)
        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(f"LLM usage: prompt={usage.prompt_tokens} completion={usage.completion_tokens}")
        if not response.choices:
            raise ValueError("LLM returned no choices")
        return response.choices[0].message.content or ""

    def _safe_json_loads(self, raw: str) -> Tuple[Optional[Dict[str, Any]], str]:
        try:
            return json.loads(raw), ""
        except json.JSONDecodeError as exc:
            return None, f"JSON parse error: {type(exc).__name__}: {exc}"

    async def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 2000,
        response_format: Optional[str] = None,
    ) -> str:
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        if response_format == "json":
            payload["response_format"] = {"type": "json_object"}

        return await asyncio.to_thread(self._chat_sync, payload)

    async def analyze_json_with_repair(
        self,
        prompt: str,
        system_prompt: str,
        repair_system_prompt: str,
        repair_user_prompt_builder: Callable[[str, str], str],
        validator: Callable[[Any], Tuple[bool, str]],
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> Dict[str, Any]:
        """请求 JSON 输出；校验失败时追加一轮修复请求"""
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ]
        response = await self.chat(
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format="json",
        )
        data, error = self._safe_json_loads(response)
        if data is not None:
            valid, verror = validator(data)
            if valid:
                return data
            error = verror or error

        logger.info(f"LLM output invalid ({error}); requesting repair")
        repair_messages = [
            {"role": "system", "content": repair_system_prompt},
            {"role": "user", "content": repair_user_prompt_builder(response, error)},
        ]
        repair_response = await self.chat(
            repair_messages,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format="json",
        )
        repair_data, repair_error = self._safe_json_loads(repair_response)
        if repair_data is None:
            raise ValueError(repair_error)
        valid, verror = validator(repair_data)
        if not valid:
            raise ValueError(verror)
        return repair_data
