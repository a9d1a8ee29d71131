"""
Realtime fan-out over SQS.

The stream relay turns inserted notification, chat and support rows into changes and
publishes them here; the websocket pusher consumes the queue and forwards each
change to the sessions subscribed to its channel.
"""
import boto3
import json
from typing import List, Dict, Any
from .config import config
from .logging import logger

sqs = boto3.client('sqs', region_name=config.AWS_REGION)

# SQS accepts at most 10 entries per SendMessageBatch call
SQS_BATCH_SIZE = 10


def notification_channel(user_id: str) -> str:
    """Channel an open session listens on for its own notifications."""
    return f"notifs_{user_id}"


def job_chat_channel(job_id: str) -> str:
    """Channel carrying the chat of one job, named after its row filter."""
    return f"job_id=eq.{job_id}"


def support_channel(user_id: str) -> str:
    """Channel of one user's support thread, shared with the admins answering it."""
    return f"support_{user_id}"


def _entry(index: int, change: Dict[str, Any]) -> Dict[str, Any]:
    entry = {
        'Id': str(index),
        'MessageBody': json.dumps(change, default=str)
    }
    if change.get('channel'):
        entry['MessageAttributes'] = {
            'channel': {'DataType': 'String', 'StringValue': change['channel']}
        }
    return entry


def send_change(queue_url: str, change: Dict[str, Any]) -> bool:
    entry = _entry(0, change)
    entry.pop('Id')
    try:
        sqs.send_message(QueueUrl=queue_url, **entry)
        return True
    except Exception as e:
        logger.error(f"Realtime change for {change.get('channel')} not sent: {e}")
        return False


def send_change_batch(queue_url: str, changes: List[Dict[str, Any]]) -> bool:
    """Send changes in chunks of ten. False if any entry was rejected."""
    all_sent = True
    for start in range(0, len(changes), SQS_BATCH_SIZE):
        chunk = changes[start:start + SQS_BATCH_SIZE]
        try:
            response = sqs.send_message_batch(
                QueueUrl=queue_url,
                Entries=[_entry(i, change) for i, change in enumerate(chunk)]
            )
        except Exception as e:
            logger.error(f"Realtime batch of {len(chunk)} not sent: {e}")
            all_sent = False
            continue

        failed = response.get('Failed') or []
        if failed:
            logger.warning(f"{len(failed)} realtime changes rejected: {[f.get('Code') for f in failed]}")
            all_sent = False

    return all_sent


def publish_changes(changes: List[Dict[str, Any]]) -> bool:
    """
    Push inserted rows to the realtime queue.

    Each change is {'channel': ..., 'table': ..., 'event': 'INSERT', 'new': row}.
    Nothing is published when no queue is configured.
    """
    if not changes:
        return True
    if not config.REALTIME_QUEUE_URL:
        logger.warning("No REALTIME_QUEUE_URL configured, dropping realtime changes")
        return False
    if len(changes) == 1:
        return send_change(config.REALTIME_QUEUE_URL, changes[0])

    sent = send_change_batch(config.REALTIME_QUEUE_URL, changes)
    logger.info(f"Published {len(changes)} realtime changes")
    return sent
