"""
Send Message Handler.
POST /jobs/{jobId}/messages
Body: { "content": "...", "media": "data:image/jpeg;base64,..." (optional) }
Only the job's client and worker can talk; the other party is notified.
"""
import uuid
import boto3
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_sub
from shared.jobs import get_job
from shared.profiles import get_profile, display_name
from shared.notifications import notify_new_message
from shared.s3_utils import upload_media
from shared.utils import format_response, parse_body, get_path_param, to_iso, utc_now

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    log_event(event, context)

    try:
        job_id = get_path_param(event, 'jobId')
        sender_id = get_user_sub(event)
        if not sender_id:
            return format_response(401, {'error': 'Unauthorized'})

        body = parse_body(event)
        content = (body.get('content') or '').strip()
        media = body.get('media')
        if not content and not media:
            return format_response(400, {'error': 'Mensagem vazia.'})

        job = get_job(job_id) if job_id else None
        if not job:
            return format_response(404, {'error': 'Job not found'})

        parties = (job.get('client_id'), job.get('worker_id'))
        if sender_id not in parties:
            return format_response(403, {'error': 'Not authorized for this job'})
        receiver_id = parties[1] if sender_id == parties[0] else parties[0]

        message = {
            'id': str(uuid.uuid4()),
            'job_id': job_id,
            'sender_id': sender_id,
            'content': content,
            'created_at': to_iso(utc_now())
        }
        if media:
            try:
                message['media_url'] = upload_media(media, f"chat/{job_id}")
            except ValueError as e:
                return format_response(400, {'error': str(e)})

        messages_table = dynamodb.Table(config.MESSAGES_TABLE)
        messages_table.put_item(Item=message)

        if receiver_id:
            sender = get_profile(sender_id)
            notify_new_message(receiver_id, display_name(sender), job_id, content or '📷 Foto')

        logger.info(f"Message {message['id']} sent on job {job_id}")

        return format_response(201, {'message': message})

    except Exception as e:
        logger.error(f"Error sending message: {e}")
        return format_response(500, {'error': str(e)})
