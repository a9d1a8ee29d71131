"""
List Notifications Handler.
GET /notifications
Unread notifications plus the ones read within the retention window,
newest first, with the action link decoded.
"""
from boto3.dynamodb.conditions import Key
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_sub
from shared.dynamo import query
from shared.notifications import filter_visible, parse_action_link
from shared.utils import format_response


def handler(event, context):
    log_event(event, context)

    try:
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        items = query(
            config.NOTIFICATIONS_TABLE,
            index_name='byUser',
            key_condition=Key('user_id').eq(user_id),
            scan_forward=False
        )

        notifications = []
        for item in filter_visible(items):
            notifications.append({**item, 'action_link': parse_action_link(item)})
        notifications.sort(key=lambda n: n.get('created_at', ''), reverse=True)

        unread = sum(1 for n in notifications if not n.get('read'))
        return format_response(200, {'notifications': notifications, 'unread': unread})

    except Exception as e:
        logger.error(f"Error listing notifications: {e}")
        return format_response(500, {'error': str(e)})
