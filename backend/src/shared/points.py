"""
Points module - worker awards, daily cap and the atomic balance increment.
"""
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

import boto3

from .config import config
from .logging import logger
from .models import JobStatus, PointsRules
from .utils import local_day, parse_iso

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def base_worker_points(estimated_hours) -> int:
    """Uncapped award for a job: hours times the hourly rate."""
    return int(Decimal(str(estimated_hours or 0)) * PointsRules.WORKER_PER_HOUR)


def calculate_worker_points(
    estimated_hours,
    points_today: int,
    same_pair_jobs_today: int = 0
) -> int:
    """
    Points a worker earns for confirming a job.

    Args:
        estimated_hours: Hours the client estimated for the job
        points_today: Points already awarded to the worker today
        same_pair_jobs_today: Other jobs this client+worker pair completed today

    Returns:
        The award, clipped to what is left under the daily cap. Repeat jobs
        for the same pair on the same day earn nothing.
    """
    if same_pair_jobs_today > 0:
        return 0
    headroom = max(0, PointsRules.WORKER_DAILY_CAP - int(points_today or 0))
    return min(base_worker_points(estimated_hours), headroom)


def completed_on(job: dict, day: date) -> bool:
    completed_at = parse_iso(job.get('completed_at'))
    return (
        job.get('status') == JobStatus.COMPLETED
        and completed_at is not None
        and local_day(completed_at) == day
    )


def points_awarded_on(worker_jobs: Iterable[dict], day: date, exclude_job_id: Optional[str] = None) -> int:
    """Sum of points a worker already earned from jobs completed on a day."""
    return sum(
        int(job.get('points_awarded', 0) or 0)
        for job in worker_jobs
        if job.get('id') != exclude_job_id and completed_on(job, day)
    )


def increment_points(user_id: str, amount: int) -> int:
    """
    Atomically add (or subtract) points on a profile.

    Returns:
        The new balance
    """
    profiles_table = dynamodb.Table(config.PROFILES_TABLE)
    response = profiles_table.update_item(
        Key={'id': user_id},
        UpdateExpression='ADD points :amount',
        ExpressionAttributeValues={':amount': int(amount)},
        ReturnValues='UPDATED_NEW'
    )
    balance = int(response.get('Attributes', {}).get('points', 0))
    logger.info(f"Points for {user_id} changed by {amount}, balance={balance}")
    return balance
