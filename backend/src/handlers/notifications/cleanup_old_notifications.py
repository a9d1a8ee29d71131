"""
Cleanup Old Notifications.
Triggered by EventBridge once a day. Deletes notifications read more than
the retention window ago. Unread ones are never deleted.
"""
from boto3.dynamodb.conditions import Attr
from shared.config import config
from shared.logging import logger, log_event
from shared.dynamo import batch_delete_items, scan
from shared.notifications import is_expired
from shared.utils import utc_now


def handler(event, context):
    log_event(event, context)

    now = utc_now()
    read_items = scan(config.NOTIFICATIONS_TABLE, Attr('read').eq(True))
    expired = [{'id': n['id']} for n in read_items if is_expired(n, now)]

    deleted = batch_delete_items(config.NOTIFICATIONS_TABLE, expired)
    logger.info(f"Cleanup removed {deleted} of {len(read_items)} read notifications")

    return {
        'statusCode': 200,
        'deleted': deleted
    }
