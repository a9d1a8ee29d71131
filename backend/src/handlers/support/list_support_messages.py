"""
List Support Messages Handler.
GET /support/messages                    the caller's own thread
GET /support/messages?userId=<user>      one user's thread (admin)
GET /support/messages?view=admin         every thread, latest activity first (admin)
"""
from boto3.dynamodb.conditions import Key
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_sub, is_admin
from shared.dynamo import query, scan
from shared.profiles import get_profile, display_name
from shared.utils import format_response, get_query_param


def get_thread(user_id: str) -> list:
    messages = query(config.SUPPORT_TABLE, index_name='byUser', key_condition=Key('user_id').eq(user_id))
    messages.sort(key=lambda m: m.get('created_at', ''))
    return messages


def summarize_threads(messages: list) -> list:
    """One entry per user thread with its latest message."""
    latest = {}
    for message in messages:
        current = latest.get(message['user_id'])
        if not current or message.get('created_at', '') > current.get('created_at', ''):
            latest[message['user_id']] = message

    threads = []
    for user_id, message in latest.items():
        threads.append({
            'userId': user_id,
            'userName': display_name(get_profile(user_id)),
            'lastMessage': message.get('content'),
            'lastAt': message.get('created_at'),
            'awaitingReply': not message.get('is_admin_reply', False)
        })
    threads.sort(key=lambda t: t['lastAt'] or '', reverse=True)
    return threads


def handler(event, context):
    log_event(event, context)

    try:
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        other_user = get_query_param(event, 'userId')
        admin_view = get_query_param(event, 'view') == 'admin'
        if (admin_view or (other_user and other_user != user_id)) and not is_admin(event):
            return format_response(403, {'error': 'Admin access required'})

        if admin_view:
            threads = summarize_threads(scan(config.SUPPORT_TABLE))
            return format_response(200, {'threads': threads, 'total': len(threads)})

        messages = get_thread(other_user or user_id)
        return format_response(200, {'messages': messages, 'total': len(messages)})

    except Exception as e:
        logger.error(f"Error listing support messages: {e}")
        return format_response(500, {'error': str(e)})
