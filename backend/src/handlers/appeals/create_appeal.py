"""
Create Appeal Handler.
POST /appeals
Body: { "jobId": "...", "appealText": "..." }

A banned user contests the punishment tied to a job. The appeal id is
derived from (user, job) so a second appeal for the same job is rejected
by the conditional write.
"""
import boto3
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.models import AppealStatus
from shared.auth import get_user_sub, is_banned
from shared.jobs import get_job
from shared.profiles import get_profile
from shared.utils import format_response, parse_body, to_iso, utc_now, is_conflict

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def appeal_id_for(user_id: str, job_id: str) -> str:
    return f"{user_id}#{job_id}"


def handler(event, context):
    log_event(event, context)

    try:
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        body = parse_body(event)
        job_id = body.get('jobId')
        appeal_text = (body.get('appealText') or '').strip()

        if not job_id:
            return format_response(400, {'error': 'Missing jobId'})
        if not appeal_text:
            return format_response(400, {'error': 'Explique o motivo do recurso.'})

        if not is_banned(get_profile(user_id)):
            return format_response(403, {'error': 'Only suspended accounts can appeal'})

        job = get_job(job_id)
        if not job or user_id not in (job.get('client_id'), job.get('worker_id')):
            return format_response(404, {'error': 'Job not found'})

        appeal = {
            'id': appeal_id_for(user_id, job_id),
            'user_id': user_id,
            'job_id': job_id,
            'appeal_text': appeal_text,
            'status': AppealStatus.PENDING,
            'created_at': to_iso(utc_now())
        }

        appeals_table = dynamodb.Table(config.APPEALS_TABLE)
        try:
            appeals_table.put_item(Item=appeal, ConditionExpression='attribute_not_exists(id)')
        except ClientError as e:
            if is_conflict(e):
                return format_response(409, {'error': 'Você já enviou um recurso para este serviço.'})
            raise

        logger.info(f"Appeal filed by {user_id} for job {job_id}")

        return format_response(201, {
            'message': 'Recurso enviado! Aguarde a análise do administrador.',
            'appealId': appeal['id']
        })

    except Exception as e:
        logger.error(f"Error creating appeal: {e}")
        return format_response(500, {'error': str(e)})
