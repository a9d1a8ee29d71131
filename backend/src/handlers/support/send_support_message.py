"""
Send Support Message Handler.
POST /support/messages
Body: { "content": "..." }                        user writing to support
Body: { "content": "...", "userId": "<user>" }    admin answering a user

Every user has a single thread keyed by their id. Admin replies notify the user.
"""
import uuid
import boto3
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_sub, is_admin
from shared.notifications import notify_support_reply
from shared.profiles import get_profile
from shared.utils import format_response, parse_body, to_iso, utc_now

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    log_event(event, context)

    try:
        sender_id = get_user_sub(event)
        if not sender_id:
            return format_response(401, {'error': 'Unauthorized'})

        body = parse_body(event)
        content = (body.get('content') or '').strip()
        if not content:
            return format_response(400, {'error': 'Mensagem vazia.'})

        thread_owner = body.get('userId') or sender_id
        from_admin = thread_owner != sender_id
        if from_admin:
            if not is_admin(event):
                return format_response(403, {'error': 'Admin access required'})
            if not get_profile(thread_owner):
                return format_response(404, {'error': 'User not found'})

        message = {
            'id': str(uuid.uuid4()),
            'user_id': thread_owner,
            'sender_id': sender_id,
            'is_admin_reply': from_admin,
            'content': content,
            'created_at': to_iso(utc_now())
        }
        dynamodb.Table(config.SUPPORT_TABLE).put_item(Item=message)

        if from_admin:
            notify_support_reply(thread_owner, content)

        logger.info(f"Support message {message['id']} on thread {thread_owner}")
        return format_response(201, {'message': message})

    except Exception as e:
        logger.error(f"Error sending support message: {e}")
        return format_response(500, {'error': str(e)})
