"""
Realtime Relay.
Triggered by DynamoDB Streams on the notifications, messages and support tables.
Inserted rows are forwarded to the realtime queue tagged with the channel
open sessions subscribe to. A row delivered twice in one batch is sent once.
"""
from boto3.dynamodb.types import TypeDeserializer
from shared.config import config
from shared.logging import logger
from shared.sqs import job_chat_channel, notification_channel, publish_changes, support_channel

deserializer = TypeDeserializer()


def table_from_arn(arn: str) -> str:
    """'arn:aws:dynamodb:...:table/<name>/stream/<label>' -> '<name>'"""
    try:
        return arn.split(':table/', 1)[1].split('/', 1)[0]
    except (AttributeError, IndexError):
        return ''


def deserialize_image(image: dict) -> dict:
    return {k: deserializer.deserialize(v) for k, v in (image or {}).items()}


def channel_for(table: str, row: dict):
    if table == config.NOTIFICATIONS_TABLE:
        return notification_channel(row['user_id'])
    if table == config.MESSAGES_TABLE:
        return job_chat_channel(row['job_id'])
    if table == config.SUPPORT_TABLE:
        return support_channel(row['user_id'])
    return None


def build_changes(records: list) -> list:
    changes = []
    seen = set()
    for record in records:
        if record.get('eventName') != 'INSERT':
            continue

        table = table_from_arn(record.get('eventSourceARN', ''))
        row = deserialize_image(record.get('dynamodb', {}).get('NewImage'))
        channel = channel_for(table, row) if row else None
        if not channel:
            continue

        dedupe_key = (table, row.get('id'))
        if dedupe_key in seen:
            continue
        seen.add(dedupe_key)

        changes.append({
            'channel': channel,
            'table': table,
            'event': 'INSERT',
            'new': row
        })
    return changes


def handler(event, context):
    records = event.get('Records', [])
    changes = build_changes(records)

    published = publish_changes(changes)
    logger.info(f"Relayed {len(changes)} of {len(records)} stream records (published={published})")

    return {
        'statusCode': 200,
        'relayed': len(changes)
    }
