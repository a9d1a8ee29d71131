"""
Admin Delete Job Handler.
DELETE /admin/jobs/{jobId}
Removes the job, its chat messages and any evidence media.
"""
import boto3
from boto3.dynamodb.conditions import Key
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import is_admin
from shared.dynamo import batch_delete_items, query
from shared.jobs import get_job
from shared.s3_utils import delete_media
from shared.utils import format_response, get_path_param

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    log_event(event, context)

    try:
        if not is_admin(event):
            return format_response(403, {'error': 'Admin access required'})

        job_id = get_path_param(event, 'jobId')
        job = get_job(job_id) if job_id else None
        if not job:
            return format_response(404, {'error': 'Job not found'})

        messages = query(config.MESSAGES_TABLE, index_name='byJob', key_condition=Key('job_id').eq(job_id))
        deleted_messages = batch_delete_items(config.MESSAGES_TABLE, [{'id': m['id']} for m in messages])

        for field in ('worker_evidence_url', 'client_evidence_url'):
            if job.get(field):
                delete_media(job[field])

        jobs_table = dynamodb.Table(config.JOBS_TABLE)
        jobs_table.delete_item(Key={'id': job_id})

        logger.info(f"Admin deleted job {job_id} with {deleted_messages} messages")

        return format_response(200, {
            'message': 'Pedido excluído.',
            'jobId': job_id,
            'deletedMessages': deleted_messages
        })

    except Exception as e:
        logger.error(f"Error deleting job: {e}")
        return format_response(500, {'error': str(e)})
