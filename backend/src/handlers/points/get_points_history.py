"""
Points History Handler.
GET /points/history
Points earned on jobs and spent on coupons, merged newest first, with the
current balance and level progress.
"""
from boto3.dynamodb.conditions import Key
from shared.config import config
from shared.logging import logger, log_event
from shared.models import AdminVerdict, JobStatus, PointsRules
from shared.auth import get_user_sub
from shared.dynamo import query
from shared.gamification import get_level_progress
from shared.jobs import get_client_jobs, get_worker_jobs
from shared.profiles import get_profile
from shared.utils import format_response


def client_points_for(job: dict) -> int:
    """Clients earn the fixed amount on clean jobs and on absolved audits."""
    if job.get('is_audited'):
        return PointsRules.CLIENT_FIXED if job.get('admin_verdict') == AdminVerdict.ABSOLVED else 0
    return PointsRules.CLIENT_FIXED if job.get('status') == JobStatus.COMPLETED else 0


def build_history(worker_jobs, client_jobs, redemptions) -> list:
    entries = []
    for job in worker_jobs:
        points = int(job.get('points_awarded', 0) or 0)
        if points > 0:
            entries.append({
                'type': 'earning',
                'description': job.get('title', ''),
                'points': points,
                'date': job.get('completed_at') or job.get('resolved_at') or job.get('finished_at')
            })
    for job in client_jobs:
        points = client_points_for(job)
        if points > 0:
            entries.append({
                'type': 'earning',
                'description': job.get('title', ''),
                'points': points,
                'date': job.get('completed_at') or job.get('resolved_at')
            })
    for redemption in redemptions:
        entries.append({
            'type': 'spending',
            'description': redemption.get('coupon_title', ''),
            'points': -int(redemption.get('cost_paid', 0)),
            'date': redemption.get('redeemed_at')
        })

    entries.sort(key=lambda e: e.get('date') or '', reverse=True)
    return entries


def handler(event, context):
    log_event(event, context)

    try:
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        profile = get_profile(user_id) or {}
        redemptions = query(
            config.REDEMPTIONS_TABLE,
            index_name='byUser',
            key_condition=Key('user_id').eq(user_id)
        )
        history = build_history(get_worker_jobs(user_id), get_client_jobs(user_id), redemptions)

        points = int(profile.get('points', 0) or 0)
        return format_response(200, {
            'points': points,
            'level': profile.get('level'),
            'progress': get_level_progress(
                points,
                float(profile.get('rating', 0) or 0),
                int(profile.get('completed_jobs', 0) or 0),
                profile.get('level')
            ),
            'history': history
        })

    except Exception as e:
        logger.error(f"Error getting points history: {e}")
        return format_response(500, {'error': str(e)})
