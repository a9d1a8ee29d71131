"""
List Messages Handler.
GET /jobs/{jobId}/messages
The job's chat in chronological order, for its two parties.
"""
from boto3.dynamodb.conditions import Key
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_sub
from shared.dynamo import query
from shared.jobs import get_job
from shared.s3_utils import generate_presigned_url
from shared.utils import format_response, get_path_param


def handler(event, context):
    log_event(event, context)

    try:
        job_id = get_path_param(event, 'jobId')
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        job = get_job(job_id) if job_id else None
        if not job:
            return format_response(404, {'error': 'Job not found'})
        if user_id not in (job.get('client_id'), job.get('worker_id')):
            return format_response(403, {'error': 'Not authorized for this job'})

        messages = query(config.MESSAGES_TABLE, index_name='byJob', key_condition=Key('job_id').eq(job_id))
        messages.sort(key=lambda m: m.get('created_at', ''))
        for message in messages:
            if message.get('media_url'):
                message['media_url'] = generate_presigned_url(message['media_url'])

        return format_response(200, {'messages': messages, 'total': len(messages)})

    except Exception as e:
        logger.error(f"Error listing messages: {e}")
        return format_response(500, {'error': str(e)})
