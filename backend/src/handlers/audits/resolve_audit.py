"""
Resolve Audit Handler.
POST /admin/audits/{jobId}/resolve
Body: { "verdict": "absolved" | "punished", "banType": "7days" | "indefinite" }

Absolving clears both flags and pays the points the audit held back.
Punishing bans both parties; the worker also drops to bronze until an
appeal restores the previous level. A job is resolved once.
"""
import boto3
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.models import AdminVerdict, BanType, PointsRules
from shared.auth import get_user_sub, is_admin
from shared.jobs import get_job
from shared.points import base_worker_points, increment_points
from shared.profiles import ban_profile, set_suspicious
from shared.notifications import notify_user_absolved, notify_user_banned
from shared.utils import format_response, parse_body, get_path_param, to_iso, utc_now, is_conflict

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    log_event(event, context)

    try:
        if not is_admin(event):
            return format_response(403, {'error': 'Admin access required'})

        job_id = get_path_param(event, 'jobId')
        body = parse_body(event)
        verdict = body.get('verdict')
        ban_type = body.get('banType', BanType.SEVEN_DAYS)

        if verdict not in (AdminVerdict.ABSOLVED, AdminVerdict.PUNISHED):
            return format_response(400, {'error': 'Invalid verdict'})
        if verdict == AdminVerdict.PUNISHED and ban_type not in (BanType.SEVEN_DAYS, BanType.INDEFINITE):
            return format_response(400, {'error': 'Invalid ban type'})

        job = get_job(job_id) if job_id else None
        if not job:
            return format_response(404, {'error': 'Job not found'})
        if not job.get('is_audited'):
            return format_response(409, {'error': 'Job is not under audit'})
        if job.get('admin_verdict'):
            return format_response(409, {'error': f"Job already {job['admin_verdict']}"})

        client_id = job.get('client_id')
        worker_id = job.get('worker_id')

        if verdict == AdminVerdict.ABSOLVED:
            worker_points = min(base_worker_points(job.get('estimated_hours')), PointsRules.WORKER_DAILY_CAP)
        else:
            worker_points = 0

        jobs_table = dynamodb.Table(config.JOBS_TABLE)
        try:
            jobs_table.update_item(
                Key={'id': job_id},
                UpdateExpression='SET admin_verdict = :verdict, points_awarded = :points, resolved_by = :admin, resolved_at = :ts',
                ConditionExpression='attribute_not_exists(admin_verdict) AND is_audited = :true',
                ExpressionAttributeValues={
                    ':verdict': verdict,
                    ':points': worker_points,
                    ':admin': get_user_sub(event),
                    ':ts': to_iso(utc_now()),
                    ':true': True
                }
            )
        except ClientError as e:
            if is_conflict(e):
                return format_response(409, {'error': 'Job was already resolved'})
            raise

        if verdict == AdminVerdict.ABSOLVED:
            set_suspicious([client_id, worker_id], False)
            if worker_points:
                increment_points(worker_id, worker_points)
            increment_points(client_id, PointsRules.CLIENT_FIXED)
            notify_user_absolved(worker_id, job.get('title', ''))
            notify_user_absolved(client_id, job.get('title', ''))
            logger.info(f"Audit {job_id} absolved: worker +{worker_points}, client +{PointsRules.CLIENT_FIXED}")
        else:
            until = ban_profile(worker_id, ban_type, reset_level=True)
            ban_profile(client_id, ban_type)
            notify_user_banned(worker_id, ban_type, until)
            notify_user_banned(client_id, ban_type, until)
            logger.warning(f"Audit {job_id} punished: {client_id} and {worker_id} banned ({ban_type})")

        return format_response(200, {
            'message': 'Auditoria resolvida.',
            'jobId': job_id,
            'verdict': verdict,
            'pointsAwarded': worker_points
        })

    except Exception as e:
        logger.error(f"Error resolving audit: {e}")
        return format_response(500, {'error': str(e)})
