"""Data models (Pydantic) for sessions, metrics and cognitive profiles."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


SessionStatus = Literal["idle", "active", "complete"]
Severity = Literal["low", "medium", "high"]


class CamelModel(BaseModel):
    """Serializes with camelCase keys, accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Point(BaseModel):
    x: int
    y: int

    @classmethod
    def of(cls, pos: tuple[int, int]) -> "Point":
        return cls(x=pos[0], y=pos[1])


class DecisionPattern(CamelModel):
    """Timing pattern across consecutive decisions."""

    pattern: Literal["no_data", "consistent", "erratic", "impulsive", "deliberate"] = "no_data"
    consistency: float = Field(default=0.0, ge=0.0, description="0~100, higher is steadier")
    speed: float = Field(default=0.0, ge=0.0, description="0~100, higher is faster")
    confidence: float = Field(default=0.0, description="Blend of consistency and speed")


class SessionMetrics(CamelModel):
    """Counters accumulated over a session, plus derived scores."""

    moves: int = Field(default=0, ge=0)
    decisions: int = Field(default=0, ge=0)
    hesitations: int = Field(default=0, ge=0)
    start_time: Optional[float] = Field(default=None, description="Wall-clock seconds")
    end_time: Optional[float] = Field(default=None, description="Wall-clock seconds")
    time_taken: int = Field(default=0, ge=0, description="Whole seconds from start to exit")
    efficiency: int = Field(default=0, ge=0, le=100)
    confidence: int = Field(default=100, ge=0, le=100)
    path_length: int = Field(default=0, ge=0)
    path_efficiency: int = Field(default=100, ge=0, le=100)
    optimal_moves: int = Field(default=0, ge=0, description="Shortest start-to-exit route")
    decision_pattern: DecisionPattern = Field(default_factory=DecisionPattern)


class SessionSnapshot(CamelModel):
    """Read-only view handed to renderers after every move."""

    status: SessionStatus
    grid: list[list[int]]
    position: Point
    exit: Point
    path: list[Point]
    hesitating: bool = False
    metrics: SessionMetrics


class Archetype(CamelModel):
    type: Literal["strategist", "explorer", "intuitive", "analytical", "balanced"]
    name: str
    description: str
    confidence: int = Field(..., ge=0, le=100, description="Overall score backing the label")


class ProfileMetrics(CamelModel):
    moves: int
    time_taken: int
    decisions: int
    hesitations: int
    move_efficiency: int = Field(..., ge=0, le=100)
    time_efficiency: int = Field(..., ge=0, le=100)
    decision_confidence: int = Field(..., ge=0, le=100)
    overall_score: int = Field(..., ge=0, le=100)


class Bias(CamelModel):
    type: str
    name: str
    description: str
    severity: Severity = "low"


class Profile(CamelModel):
    """Cognitive profile returned by every analysis provider."""

    session_id: Optional[str] = None
    archetype: Archetype
    metrics: ProfileMetrics
    biases: list[Bias] = Field(default_factory=list)
    insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    timestamp: str

    def shareable(self) -> dict:
        return {
            "archetype": self.archetype.name,
            "score": self.metrics.overall_score,
            "topBias": self.biases[0].name if self.biases else "None detected",
        }


class AnalysisRequest(CamelModel):
    """Final session figures sent for analysis."""

    session_id: Optional[str] = None
    moves: int = Field(default=0, ge=0)
    time_taken: int = Field(default=0, ge=0)
    decisions: Optional[int] = Field(default=None, ge=0)
    hesitations: int = Field(default=0, ge=0)

    @classmethod
    def from_metrics(cls, metrics: SessionMetrics, session_id: Optional[str] = None) -> "AnalysisRequest":
        return cls(
            session_id=session_id,
            moves=metrics.moves,
            time_taken=metrics.time_taken,
            decisions=metrics.decisions,
            hesitations=metrics.hesitations,
        )
