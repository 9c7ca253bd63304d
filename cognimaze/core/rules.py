"""评分与认知画像规则

Fixed-threshold scoring rules that turn session figures into a cognitive
profile. Everything here is pure and deterministic (apart from the profile
timestamp).
"""

import math
from datetime import datetime, timezone
from typing import Optional, Sequence

from .models import Archetype, Bias, DecisionPattern, Profile, ProfileMetrics


# 毫秒阈值
HESITATION_THRESHOLD_MS = 1000
HESITATING_THRESHOLD_MS = 2000

CONFIDENCE_PENALTY_PER_HESITATION = 5

# Canonical threshold; the old browser fallback used 60.
ANALYSIS_PARALYSIS_MOVES = 50
EXPLORER_MIN_MOVES = 30


ARCHETYPES = {
    "strategist": ("The Strategist", "Efficient planner who thinks ahead and manages time well"),
    "explorer": ("The Explorer", "Curious mind who explores all possibilities before deciding"),
    "intuitive": ("The Intuitive", "Quick decision maker who trusts instincts and adapts rapidly"),
    "analytical": ("The Analytical", "Careful thinker who analyzes thoroughly before acting"),
    "balanced": ("The Balanced Thinker", "Shows a good mix of different thinking styles"),
}

BIASES = {
    "analysis_paralysis": ("Analysis Paralysis", "Tendency to over-analyze situations"),
    "decision_anxiety": ("Decision Anxiety", "Hesitation when making choices"),
    "impulsivity": ("Impulsivity", "Making quick decisions without full consideration"),
    "perfectionism": ("Perfectionism", "Seeking perfect solutions at the cost of time"),
    "confirmation_bias": ("Confirmation Bias", "Favoring information that confirms existing beliefs"),
}


def round_half_up(value: float) -> int:
    """Round halves upwards, matching the browser's Math.round."""
    return math.floor(value + 0.5)


def clamp(low: int, high: int, value: int) -> int:
    return max(low, min(high, value))


def compute_efficiency(moves: int) -> int:
    """100 moves -> 0%, 0 moves -> 100%."""
    return clamp(0, 100, round_half_up((100 - moves) * 100 / 150))


def compute_time_efficiency(time_taken: float) -> int:
    return clamp(0, 100, round_half_up((300 - time_taken) * 100 / 300))


def compute_confidence(hesitations: int) -> int:
    return clamp(0, 100, 100 - hesitations * CONFIDENCE_PENALTY_PER_HESITATION)


def detect_biases(moves: int, time_taken: float, hesitations: int, decisions: int) -> list[Bias]:
    """根据阈值规则检测认知偏差（相互独立）"""
    triggered = []
    if moves > ANALYSIS_PARALYSIS_MOVES:
        triggered.append("analysis_paralysis")
    if hesitations > 10:
        triggered.append("decision_anxiety")
    if time_taken < 30 and moves > 40:
        triggered.append("impulsivity")
    if moves < 30 and time_taken > 120:
        triggered.append("perfectionism")
    if decisions > 50 and hesitations < 5:
        triggered.append("confirmation_bias")

    return [
        Bias(type=key, name=BIASES[key][0], description=BIASES[key][1], severity="low")
        for key in triggered
    ]


def determine_archetype(
    moves: int,
    efficiency: int,
    time_efficiency: int,
    confidence: int,
    overall_score: int,
) -> Archetype:
    """按优先级选择认知原型

    The conditions overlap, so the order below is the tie-break.
    """
    if efficiency > 80 and time_efficiency > 80:
        key = "strategist"
    elif efficiency < 60 and moves > EXPLORER_MIN_MOVES:
        key = "explorer"
    elif time_efficiency > 90:
        key = "intuitive"
    elif confidence < 70:
        key = "analytical"
    else:
        key = "balanced"

    name, description = ARCHETYPES[key]
    return Archetype(type=key, name=name, description=description, confidence=overall_score)


def build_recommendations(biases: list[Bias], efficiency: int, time_efficiency: int) -> list[str]:
    return [
        f"Practice making quicker decisions to overcome {biases[0].name}"
        if biases
        else "Great balanced approach!",
        "Try planning your route more carefully" if efficiency < 70 else "Excellent path efficiency!",
        "Work on time management during puzzles" if time_efficiency < 70 else "Great time management!",
    ]


def classify(
    moves: int,
    time_taken: float,
    hesitations: int,
    decisions: Optional[int] = None,
    session_id: Optional[str] = None,
) -> Profile:
    """将最终指标映射为认知画像

    Args:
        moves: 接受的移动次数
        time_taken: 用时（秒）
        hesitations: 犹豫次数
        decisions: 决策次数（缺省等于 moves）
        session_id: 可选的会话 ID

    Returns:
        Profile 对象
    """
    if decisions is None:
        decisions = moves

    efficiency = compute_efficiency(moves)
    time_efficiency = compute_time_efficiency(time_taken)
    confidence = compute_confidence(hesitations)
    overall_score = round_half_up((efficiency + time_efficiency + confidence) / 3)

    biases = detect_biases(moves, time_taken, hesitations, decisions)
    archetype = determine_archetype(moves, efficiency, time_efficiency, confidence, overall_score)

    insights = [
        f"You made {moves} moves in {time_taken} seconds",
        f"Your decision efficiency score: {efficiency}%",
        f"Your time management score: {time_efficiency}%",
        f"Your confidence level: {confidence}%",
    ]

    return Profile(
        session_id=session_id,
        archetype=archetype,
        metrics=ProfileMetrics(
            moves=moves,
            time_taken=int(time_taken),
            decisions=decisions,
            hesitations=hesitations,
            move_efficiency=efficiency,
            time_efficiency=time_efficiency,
            decision_confidence=confidence,
            overall_score=overall_score,
        ),
        biases=biases,
        insights=insights,
        recommendations=build_recommendations(biases, efficiency, time_efficiency),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def analyze_decision_timing(timestamps_ms: Sequence[float]) -> DecisionPattern:
    """分析决策间隔的节奏

    Args:
        timestamps_ms: 每次决策的时间戳（毫秒，升序）

    Returns:
        DecisionPattern，later rules win (deliberate beats impulsive beats erratic)
    """
    if not timestamps_ms:
        return DecisionPattern()

    gaps = [b - a for a, b in zip(timestamps_ms, timestamps_ms[1:])]
    avg = sum(gaps) / len(gaps) if gaps else 0.0
    variance = sum((gap - avg) ** 2 for gap in gaps) / len(gaps) if len(gaps) > 1 else 0.0

    pattern = "consistent"
    if variance > 5000:
        pattern = "erratic"
    if avg < 1000:
        pattern = "impulsive"
    if avg > 5000:
        pattern = "deliberate"

    return DecisionPattern(
        pattern=pattern,
        consistency=max(0.0, 100 - variance / 100),
        speed=max(0.0, 100 - avg / 100),
        confidence=min(100.0, (100 - variance / 1000) + (100 - avg / 100)) / 2,
    )


def path_efficiency(path: Sequence[tuple[int, int]]) -> int:
    """路径平直度：每次转向扣 5 分"""
    if len(path) < 2:
        return 100

    turns = 0
    for prev, mid, cur in zip(path, path[1:], path[2:]):
        first = (mid[0] - prev[0], mid[1] - prev[1])
        second = (cur[0] - mid[0], cur[1] - mid[1])
        if first != second:
            turns += 1

    return max(0, 100 - turns * 5)
