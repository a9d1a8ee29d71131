"""
DynamoDB helpers shared by the handlers.

Reads follow LastEvaluatedKey until the table is exhausted; writes go through
batch_writer so callers never deal with the 25-item batch limit. Failures are
logged and reported as an empty/falsy result instead of raising, because most
callers (fan-out notifications, listings, cleanup jobs) degrade rather than
fail the request. Reads that feed points or bans pass strict=True and get the
error.
"""
import boto3
from typing import List, Dict, Any, Optional
from .config import config
from .logging import logger

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def _collect(operation, params: Dict[str, Any], limit: Optional[int] = None) -> List[Dict[str, Any]]:
    items = []
    while True:
        response = operation(**params)
        items.extend(response.get('Items', []))
        last_key = response.get('LastEvaluatedKey')
        if not last_key or (limit and len(items) >= limit):
            return items[:limit] if limit else items
        params['ExclusiveStartKey'] = last_key


def query(
    table_name: str,
    index_name: Optional[str] = None,
    key_condition: Optional[Any] = None,
    filter_expression: Optional[Any] = None,
    limit: Optional[int] = None,
    scan_forward: bool = True,
    strict: bool = False
) -> List[Dict[str, Any]]:
    """
    Query a table or one of its GSIs (byClient, byWorker, byStatus, byUser, byJob...).

    Args:
        table_name: DynamoDB table name from config
        index_name: GSI to query, None for the base table
        key_condition: boto3 Key(...) condition
        filter_expression: boto3 Attr(...) condition applied after the read
        limit: Stop once this many items were collected
        scan_forward: False to get the sort key descending (newest first)
        strict: Re-raise read errors instead of returning []

    Returns:
        Matching items, [] on error
    """
    params = {'ScanIndexForward': scan_forward}
    if index_name:
        params['IndexName'] = index_name
    if key_condition is not None:
        params['KeyConditionExpression'] = key_condition
    if filter_expression is not None:
        params['FilterExpression'] = filter_expression

    try:
        return _collect(dynamodb.Table(table_name).query, params, limit)
    except Exception as e:
        logger.error(f"Query on {table_name}/{index_name or 'base'} failed: {e}")
        if strict:
            raise
        return []


def scan(table_name: str, filter_expression: Optional[Any] = None, strict: bool = False) -> List[Dict[str, Any]]:
    """Read a whole table. Used by admin views, matching and scheduled jobs."""
    params = {}
    if filter_expression is not None:
        params['FilterExpression'] = filter_expression

    try:
        return _collect(dynamodb.Table(table_name).scan, params)
    except Exception as e:
        logger.error(f"Scan on {table_name} failed: {e}")
        if strict:
            raise
        return []


def put_item(table_name: str, item: Dict[str, Any]) -> bool:
    try:
        dynamodb.Table(table_name).put_item(Item=item)
        return True
    except Exception as e:
        logger.error(f"Put into {table_name} failed: {e}")
        return False


def batch_write_items(table_name: str, items: List[Dict[str, Any]]) -> bool:
    """Put many rows at once (notification fan-out, broadcasts)."""
    if not items:
        return True
    try:
        with dynamodb.Table(table_name).batch_writer() as batch:
            for item in items:
                batch.put_item(Item=item)
        logger.info(f"Wrote {len(items)} rows to {table_name}")
        return True
    except Exception as e:
        logger.error(f"Batch write to {table_name} failed: {e}")
        return False


def batch_delete_items(table_name: str, keys: List[Dict[str, Any]]) -> int:
    """Delete rows by key. Returns how many were deleted, 0 on error."""
    if not keys:
        return 0
    try:
        with dynamodb.Table(table_name).batch_writer() as batch:
            for key in keys:
                batch.delete_item(Key=key)
        logger.info(f"Deleted {len(keys)} rows from {table_name}")
        return len(keys)
    except Exception as e:
        logger.error(f"Batch delete from {table_name} failed: {e}")
        return 0
