"""Base class for analysis providers."""

from abc import ABC, abstractmethod

from ..core.models import AnalysisRequest, Profile


class AnalysisProvider(ABC):
    """Unified interface for cognitive-profile providers.

    Every provider returns the same Profile shape, so callers never need to
    know whether the analysis ran locally or on a remote service.
    """

    @abstractmethod
    def analyze(self, request: AnalysisRequest) -> Profile:
        """Build a cognitive profile from final session figures."""
        raise NotImplementedError

    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError
