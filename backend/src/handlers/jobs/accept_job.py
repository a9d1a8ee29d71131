"""
Accept Job Handler.
POST /worker/jobs/{jobId}/accept
Binds a pending job to the worker and starts it.
"""
import boto3
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.models import JobStatus
from shared.auth import get_user_sub, is_banned
from shared.jobs import find_active_job, get_job, is_visible_to_worker, can_transition
from shared.profiles import get_profile, display_name
from shared.notifications import notify_client_job_accepted
from shared.utils import format_response, get_path_param, to_iso, utc_now, is_conflict

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    log_event(event, context)

    try:
        job_id = get_path_param(event, 'jobId')
        worker_id = get_user_sub(event)
        if not worker_id:
            return format_response(401, {'error': 'Unauthorized'})
        if not job_id:
            return format_response(400, {'error': 'Missing jobId'})

        worker = get_profile(worker_id)
        if is_banned(worker):
            return format_response(403, {'error': 'Sua conta está suspensa.'})

        job = get_job(job_id)
        if not job:
            return format_response(404, {'error': 'Job not found'})

        if not can_transition(job.get('status'), JobStatus.IN_PROGRESS):
            return format_response(409, {'error': 'Este pedido não está mais disponível.'})

        if not is_visible_to_worker(job, worker_id):
            return format_response(403, {'error': 'Este pedido foi enviado para outro profissional.'})

        if job.get('client_id') == worker_id:
            return format_response(400, {'error': 'Você não pode aceitar o próprio pedido.'})

        # One active job per worker. Checked right before the write; two
        # concurrent accepts can still both pass.
        active = find_active_job(worker_id)
        if active:
            return format_response(409, {
                'error': 'Você já possui um serviço em andamento.',
                'activeJobId': active.get('id')
            })

        jobs_table = dynamodb.Table(config.JOBS_TABLE)
        accepted_at = to_iso(utc_now())

        try:
            jobs_table.update_item(
                Key={'id': job_id},
                UpdateExpression='SET worker_id = :wid, #status = :in_progress, accepted_at = :ts',
                ConditionExpression='#status = :pending AND (attribute_not_exists(worker_id) OR worker_id = :wid)',
                ExpressionAttributeNames={'#status': 'status'},
                ExpressionAttributeValues={
                    ':wid': worker_id,
                    ':in_progress': JobStatus.IN_PROGRESS,
                    ':pending': JobStatus.PENDING,
                    ':ts': accepted_at
                }
            )
        except ClientError as e:
            if is_conflict(e):
                # Another worker took it, or the client cancelled meanwhile
                return format_response(409, {'error': 'Este pedido não está mais disponível.'})
            raise

        notify_client_job_accepted(
            job['client_id'], display_name(worker, 'Profissional'), job.get('title', ''), job_id
        )
        logger.info(f"Job {job_id} accepted by {worker_id}")

        return format_response(200, {
            'message': 'Serviço aceito com sucesso!',
            'jobId': job_id,
            'acceptedAt': accepted_at
        })

    except Exception as e:
        logger.error(f"Error accepting job: {e}")
        return format_response(500, {'error': str(e)})
