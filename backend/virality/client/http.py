"""Virality Analyzer HTTP 客户端"""
import logging
from typing import Any, Dict, List, Optional

import requests

from virality.errors import ApiError, AuthenticationError, NotFoundError

logger = logging.getLogger(__name__)


class ViralityClient:
    """同步 HTTP 客户端；会话 cookie 由调用方提供"""

    def __init__(
        self,
        base_url: str,
        cookies: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()
        if cookies:
            self.http.cookies.update(cookies)

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, json=json, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {path} failed: {type(e).__name__}: {e}")
            raise ApiError(f"Request failed: {e}", status_code=503) from e

        if response.ok:
            return response.json()

        message = _error_message(response)
        if response.status_code == 401:
            raise AuthenticationError(message or None)
        if response.status_code == 404:
            raise NotFoundError(message or None)
        raise ApiError(message or f"Request failed with status {response.status_code}", response.status_code)

    def list_analyses(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/analysis")

    def get_analysis(self, analysis_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/analysis/{analysis_id}")

    def create_analysis(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/analysis", json=body)

    def update_analysis(self, analysis_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/api/analysis/{analysis_id}", json=changes)

    def get_credits(self) -> Dict[str, Any]:
        return self._request("GET", "/api/credits")


def _error_message(response: requests.Response) -> str:
    """服务端 {"error": ...} 原样透传"""
    try:
        data = response.json()
    except ValueError:
        return ""
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return ""
