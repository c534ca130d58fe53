from .challenge import WeeklyChallenge

__all__ = [
    "WeeklyChallenge",
]
