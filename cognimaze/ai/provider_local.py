"""Local Provider

本地规则分析，无需网络连接
"""

from .provider_base import AnalysisProvider
from ..core.models import AnalysisRequest, Profile
from ..core.rules import classify


class LocalProvider(AnalysisProvider):
    """Rule-based analysis; also the fallback for every remote provider."""

    @property
    def name(self) -> str:
        return "Local Provider (Rules)"

    def analyze(self, request: AnalysisRequest) -> Profile:
        return classify(
            moves=request.moves,
            time_taken=request.time_taken,
            hesitations=request.hesitations,
            decisions=request.decisions,
            session_id=request.session_id,
        )
