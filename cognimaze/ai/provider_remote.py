"""Remote Provider

调用远程分析服务（POST /api/analyze/game），失败时回退到本地规则
"""

import logging
import os
from typing import Optional

import requests

from .provider_base import AnalysisProvider
from .provider_local import LocalProvider
from ..core.models import AnalysisRequest, Profile

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://localhost:3000"


class RemoteProvider(AnalysisProvider):
    """Analysis service reachable over HTTP."""

    def __init__(self, base_url: str = DEFAULT_URL, timeout: float = 5.0, probe: bool = True):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._fallback = LocalProvider()
        self._client: Optional[bool] = self._test_api() if probe else True

    def _test_api(self) -> bool:
        try:
            r = requests.get(f"{self.base_url}/api/health", timeout=1)
            return r.status_code == 200
        except requests.RequestException:
            return False

    @property
    def name(self) -> str:
        if self._client:
            return f"Remote Provider ({self.base_url})"
        return "Remote Provider (fallback Local)"

    def analyze(self, request: AnalysisRequest) -> Profile:
        """使用远程服务分析

        失败时回退到 Local Provider
        """
        if not self._client:
            return self._fallback.analyze(request)

        body = request.model_dump(mode="json", by_alias=True, exclude_none=True)
        body.setdefault("sessionId", "anonymous")
        try:
            resp = requests.post(
                f"{self.base_url}/api/analyze/game",
                json=body,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
            return Profile.model_validate(data["profile"])
        except Exception as exc:
            logger.warning("Remote analysis failed: %s, falling back to Local", exc)
            return self._fallback.analyze(request)


def create_remote_provider(base_url: Optional[str] = None, timeout: float = 5.0) -> RemoteProvider:
    """
    外部统一调用入口
    """
    if base_url is None:
        base_url = os.getenv("COGNIMAZE_ANALYSIS_URL", DEFAULT_URL)
    return RemoteProvider(base_url=base_url, timeout=timeout)
