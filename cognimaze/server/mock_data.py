"""Static showcase data served by the leaderboard and stats endpoints."""

LEADERBOARD = [
    {"rank": 1, "username": "MindMaster", "score": 98, "archetype": "Strategist", "time": "1:23"},
    {"rank": 2, "username": "Brainiac", "score": 95, "archetype": "Intuitive", "time": "1:45"},
    {"rank": 3, "username": "PuzzleSage", "score": 92, "archetype": "Analytical", "time": "2:10"},
    {"rank": 4, "username": "NeuroNomad", "score": 88, "archetype": "Explorer", "time": "3:30"},
    {"rank": 5, "username": "CognitiveNinja", "score": 85, "archetype": "Balanced", "time": "1:55"},
    {"rank": 6, "username": "ThoughtWeaver", "score": 82, "archetype": "Strategist", "time": "2:05"},
    {"rank": 7, "username": "PatternSeeker", "score": 80, "archetype": "Analytical", "time": "2:45"},
    {"rank": 8, "username": "MindfulMaze", "score": 78, "archetype": "Explorer", "time": "3:15"},
]

STATS = {
    "totalGames": 1234,
    "totalPlayers": 892,
    "averageScore": 72,
    "mostCommonArchetype": "Balanced",
    "averageTime": "2:30",
    "puzzlesCompleted": 7890,
    "activeToday": 156,
}


def leaderboard(limit: int = len(LEADERBOARD)) -> list[dict]:
    return [dict(entry) for entry in LEADERBOARD[:limit]]


def stats() -> dict:
    return dict(STATS)
