"""
Mark Notifications Read Handler.
POST /notifications/read
Body: { "notificationId": "..." } marks one; an empty body marks all unread.
"""
import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_sub
from shared.dynamo import query
from shared.utils import format_response, parse_body, to_iso, utc_now, is_conflict

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def mark_read(notification_id: str, user_id: str, read_at: str) -> bool:
    """Stamp one notification; the condition keeps users to their own rows."""
    notifications_table = dynamodb.Table(config.NOTIFICATIONS_TABLE)
    try:
        notifications_table.update_item(
            Key={'id': notification_id},
            UpdateExpression='SET #read = :true, read_at = :ts',
            ConditionExpression='user_id = :uid',
            ExpressionAttributeNames={'#read': 'read'},
            ExpressionAttributeValues={':true': True, ':ts': read_at, ':uid': user_id}
        )
        return True
    except ClientError as e:
        if is_conflict(e):
            return False
        raise


def handler(event, context):
    log_event(event, context)

    try:
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        notification_id = parse_body(event).get('notificationId')
        read_at = to_iso(utc_now())

        if notification_id:
            if not mark_read(notification_id, user_id, read_at):
                return format_response(404, {'error': 'Notification not found'})
            return format_response(200, {'message': 'Notification marked as read', 'updated': 1})

        unread = query(
            config.NOTIFICATIONS_TABLE,
            index_name='byUser',
            key_condition=Key('user_id').eq(user_id),
            filter_expression=Attr('read').eq(False)
        )
        updated = sum(1 for n in unread if mark_read(n['id'], user_id, read_at))

        logger.info(f"Marked {updated} notifications read for {user_id}")
        return format_response(200, {'message': 'All notifications marked as read', 'updated': updated})

    except Exception as e:
        logger.error(f"Error marking notifications read: {e}")
        return format_response(500, {'error': str(e)})
