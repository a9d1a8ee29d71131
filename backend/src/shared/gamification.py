"""
Gamification module - Worker level calculations and constants.
"""
from .models import WorkerLevel


# Level thresholds configuration, highest first
LEVEL_THRESHOLDS = {
    WorkerLevel.DIAMOND: {
        'min_points': 2000,
        'min_rating': 4.8,
        'min_jobs': 100
    },
    WorkerLevel.GOLD: {
        'min_points': 800,
        'min_rating': 4.5,
        'min_jobs': 40
    },
    WorkerLevel.SILVER: {
        'min_points': 200,
        'min_rating': 4.0,
        'min_jobs': 10
    },
    WorkerLevel.BRONZE: {
        'min_points': 0,
        'min_rating': 0.0,
        'min_jobs': 0
    }
}

# Level hierarchy for comparison
LEVEL_HIERARCHY = {
    WorkerLevel.BRONZE: 0,
    WorkerLevel.SILVER: 1,
    WorkerLevel.GOLD: 2,
    WorkerLevel.DIAMOND: 3,
}

LEVEL_ORDER = [WorkerLevel.BRONZE, WorkerLevel.SILVER, WorkerLevel.GOLD, WorkerLevel.DIAMOND]


def _meets(thresholds: dict, points: int, rating: float, completed_jobs: int) -> bool:
    return (
        points >= thresholds['min_points']
        and rating >= thresholds['min_rating']
        and completed_jobs >= thresholds['min_jobs']
    )


def calculate_level(points: int, rating: float, completed_jobs: int) -> str:
    """
    Calculate worker level from points, average rating and completed jobs.

    Rules:
    - DIAMOND: 2000 points, rating 4.8, 100 jobs
    - GOLD: 800 points, rating 4.5, 40 jobs
    - SILVER: 200 points, rating 4.0, 10 jobs
    - BRONZE: default

    Returns:
        WorkerLevel constant
    """
    for level in reversed(LEVEL_ORDER):
        if _meets(LEVEL_THRESHOLDS[level], points or 0, float(rating or 0), completed_jobs or 0):
            return level
    return WorkerLevel.BRONZE


def resolve_level(profile: dict) -> str:
    """
    Level a profile should carry after its stats change.
    A level set by an admin sticks until the override is cleared.
    """
    if profile.get('level_admin_override'):
        return profile.get('level') or WorkerLevel.BRONZE
    return calculate_level(
        int(profile.get('points', 0) or 0),
        float(profile.get('rating', 0) or 0),
        int(profile.get('completed_jobs', 0) or 0),
    )


def update_rating(current_rating: float, completed_jobs: int, new_rating: int) -> float:
    """Fold one more rating into a running average over completed jobs."""
    total = float(current_rating or 0) * (completed_jobs or 0) + new_rating
    return round(total / ((completed_jobs or 0) + 1), 2)


def get_level_progress(points: int, rating: float, completed_jobs: int, current_level: str) -> dict:
    """
    Get progress information toward next level.

    Returns:
        Dict with progress info
    """
    current_rank = LEVEL_HIERARCHY.get(current_level, 0)

    if current_rank >= LEVEL_HIERARCHY[WorkerLevel.DIAMOND]:
        return {
            'current_level': current_level,
            'next_level': None,
            'progress_pct': 100,
            'requirements_met': True
        }

    next_level = LEVEL_ORDER[current_rank + 1]
    thresholds = LEVEL_THRESHOLDS[next_level]
    points_progress = min(points / thresholds['min_points'], 1.0) * 40
    rating_progress = min(float(rating or 0) / thresholds['min_rating'], 1.0) * 30
    jobs_progress = min(completed_jobs / thresholds['min_jobs'], 1.0) * 30

    return {
        'current_level': current_level,
        'next_level': next_level,
        'progress_pct': round(points_progress + rating_progress + jobs_progress, 1),
        'requirements_met': _meets(thresholds, points, float(rating or 0), completed_jobs)
    }
