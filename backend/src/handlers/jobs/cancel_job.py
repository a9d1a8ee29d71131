"""
Cancel Job Handler.
POST /jobs/{jobId}/cancel
Body: { "reason": "..." }
Either party may cancel while the job is pending or in progress.
"""
import boto3
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.models import JobStatus
from shared.auth import get_user_sub
from shared.jobs import get_job, can_transition
from shared.profiles import get_profile, display_name
from shared.notifications import notify_job_cancelled
from shared.utils import format_response, parse_body, get_path_param, to_iso, utc_now, is_conflict

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    log_event(event, context)

    try:
        job_id = get_path_param(event, 'jobId')
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        reason = (parse_body(event).get('reason') or '').strip()
        if not reason:
            return format_response(400, {'error': 'Informe o motivo.'})

        job = get_job(job_id) if job_id else None
        if not job:
            return format_response(404, {'error': 'Job not found'})

        by_client = job.get('client_id') == user_id
        if not by_client and job.get('worker_id') != user_id:
            return format_response(403, {'error': 'Not authorized for this job'})

        current = job.get('status')
        if not can_transition(current, JobStatus.CANCELLED):
            return format_response(409, {'error': f"Job is {current}, cannot be cancelled"})

        jobs_table = dynamodb.Table(config.JOBS_TABLE)
        try:
            jobs_table.update_item(
                Key={'id': job_id},
                UpdateExpression='SET #status = :cancelled, cancellation_reason = :reason, cancelled_by = :uid, cancelled_at = :ts',
                ConditionExpression='#status = :current',
                ExpressionAttributeNames={'#status': 'status'},
                ExpressionAttributeValues={
                    ':cancelled': JobStatus.CANCELLED,
                    ':current': current,
                    ':reason': reason,
                    ':uid': user_id,
                    ':ts': to_iso(utc_now())
                }
            )
        except ClientError as e:
            if is_conflict(e):
                return format_response(409, {'error': 'Job changed while cancelling, reload and try again'})
            raise

        counterpart = job.get('worker_id') if by_client else job.get('client_id')
        if counterpart:
            canceller = get_profile(user_id)
            notify_job_cancelled(
                counterpart,
                display_name(canceller, 'Cliente' if by_client else 'Profissional'),
                job.get('title', ''),
                reason,
                by_client
            )

        logger.info(f"Job {job_id} cancelled by {user_id} from {current}")

        return format_response(200, {'message': 'Serviço cancelado.', 'jobId': job_id})

    except Exception as e:
        logger.error(f"Error cancelling job: {e}")
        return format_response(500, {'error': str(e)})
