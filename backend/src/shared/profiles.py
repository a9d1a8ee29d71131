"""
Profile helpers: lookups, worker matching and the ban/unban writes shared by
audit resolution, appeals and manual moderation.
"""
from datetime import datetime, timedelta
from typing import List, Optional

import boto3
from boto3.dynamodb.conditions import Attr

from .auth import is_banned
from .config import config
from .dynamo import scan
from .gamification import LEVEL_HIERARCHY
from .jobs import split_categories
from .logging import logger
from .models import BanType, Role, WorkerLevel
from .s3_utils import generate_presigned_url
from .utils import normalize_text, to_iso, utc_now

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def get_profile(user_id: str) -> Optional[dict]:
    profiles_table = dynamodb.Table(config.PROFILES_TABLE)
    return profiles_table.get_item(Key={'id': user_id}).get('Item')


def display_name(profile: Optional[dict], fallback: str = 'Usuário') -> str:
    if not profile:
        return fallback
    return profile.get('full_name') or fallback


def matches_job(worker: dict, city: Optional[str], category_name: str) -> bool:
    """
    A worker is eligible for a job in the same city (when the job has one)
    whose categories appear in the worker's specialty. Unrestricted jobs
    match every specialty.
    """
    if city and normalize_text(worker.get('city')) != normalize_text(city):
        return False
    categories = split_categories(category_name)
    if not categories:
        return True
    specialty = normalize_text(worker.get('specialty'))
    return any(normalize_text(category) in specialty for category in categories)


def find_eligible_workers(city: Optional[str], category_name: str, exclude_id: str = None) -> List[dict]:
    """
    Workers who should hear about a new job. Bans are judged with is_banned,
    so a worker whose temporary ban ran out is eligible again even though
    nothing flipped the stored active flag back.
    """
    workers = scan(config.PROFILES_TABLE, Attr('allowed_roles').contains(Role.WORKER))
    now = utc_now()
    return [
        w for w in workers
        if w.get('id') != exclude_id
        and not is_banned(w, now)
        and matches_job(w, city, category_name)
    ]


PUBLIC_WORKER_FIELDS = ('id', 'full_name', 'bio', 'specialty', 'level', 'rating', 'city', 'state')


def public_worker_view(profile: dict) -> dict:
    """What clients see of a worker: no contact data, CPF or points."""
    view = {field: profile.get(field) for field in PUBLIC_WORKER_FIELDS}
    view['level'] = view['level'] or WorkerLevel.BRONZE
    view['verified_count'] = int(profile.get('completed_jobs', 0) or 0)
    view['avatar_url'] = generate_presigned_url(profile.get('avatar_url'))
    return view


def search_workers(category: Optional[str] = None, city: Optional[str] = None,
                   exclude_id: str = None) -> List[dict]:
    """
    Workers a client can hire directly, best first (level, then rating).

    category matches anywhere in the specialty string, ignoring case and
    accents, so "eletrica" finds "Pintura, Elétrica". Banned workers are left out.
    """
    wanted_category = normalize_text(category)
    wanted_city = normalize_text(city)
    now = utc_now()

    found = []
    for worker in scan(config.PROFILES_TABLE, Attr('allowed_roles').contains(Role.WORKER)):
        if worker.get('id') == exclude_id or is_banned(worker, now):
            continue
        if wanted_category and wanted_category not in normalize_text(worker.get('specialty')):
            continue
        if wanted_city and normalize_text(worker.get('city')) != wanted_city:
            continue
        found.append(worker)

    found.sort(key=lambda w: (
        -LEVEL_HIERARCHY.get(w.get('level'), 0),
        -float(w.get('rating', 0) or 0),
        normalize_text(w.get('full_name')),
    ))
    return found


def ban_until(ban_type: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """End of a ban; None means indefinite."""
    if ban_type == BanType.SEVEN_DAYS:
        return (now or utc_now()) + timedelta(days=config.BAN_DAYS)
    if ban_type == BanType.INDEFINITE:
        return None
    raise ValueError(f"Unknown ban type: {ban_type}")


def ban_profile(user_id: str, ban_type: str, reset_level: bool = False,
                now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Deactivate an account. With reset_level the worker drops to bronze and the
    previous level is kept in level_before_ban for a possible restore.

    Returns:
        When the ban ends, None for indefinite bans
    """
    until = ban_until(ban_type, now)
    profiles_table = dynamodb.Table(config.PROFILES_TABLE)

    update_expr = 'SET active = :inactive, punishment_until = :until'
    values = {':inactive': False, ':until': to_iso(until) if until else None}

    if reset_level:
        profile = get_profile(user_id) or {}
        previous = profile.get('level') or WorkerLevel.BRONZE
        # Keep the level from the first ban if the account is banned again
        if not profile.get('level_before_ban'):
            update_expr += ', level_before_ban = :previous'
            values[':previous'] = previous
        update_expr += ', #lvl = :bronze'
        values[':bronze'] = WorkerLevel.BRONZE

        profiles_table.update_item(
            Key={'id': user_id},
            UpdateExpression=update_expr,
            ExpressionAttributeNames={'#lvl': 'level'},
            ExpressionAttributeValues=values
        )
    else:
        profiles_table.update_item(
            Key={'id': user_id},
            UpdateExpression=update_expr,
            ExpressionAttributeValues=values
        )

    logger.info(f"Banned {user_id} ({ban_type}) until {until or 'indefinitely'}")
    return until


def unban_profile(user_id: str, restore_level: bool = True) -> None:
    """Reactivate an account, clear its flags and restore the pre-ban level."""
    profiles_table = dynamodb.Table(config.PROFILES_TABLE)
    profile = get_profile(user_id) or {}

    update_expr = 'SET active = :active, suspicious_flag = :clear REMOVE punishment_until'
    values = {':active': True, ':clear': False}
    names = None

    if restore_level and profile.get('level_before_ban'):
        update_expr = (
            'SET active = :active, suspicious_flag = :clear, #lvl = :previous '
            'REMOVE punishment_until, level_before_ban'
        )
        values[':previous'] = profile['level_before_ban']
        names = {'#lvl': 'level'}

    params = {
        'Key': {'id': user_id},
        'UpdateExpression': update_expr,
        'ExpressionAttributeValues': values
    }
    if names:
        params['ExpressionAttributeNames'] = names
    profiles_table.update_item(**params)
    logger.info(f"Unbanned {user_id}")


def set_suspicious(user_ids: List[str], flag: bool) -> None:
    profiles_table = dynamodb.Table(config.PROFILES_TABLE)
    for user_id in user_ids:
        if not user_id:
            continue
        profiles_table.update_item(
            Key={'id': user_id},
            UpdateExpression='SET suspicious_flag = :flag',
            ExpressionAttributeValues={':flag': flag}
        )
