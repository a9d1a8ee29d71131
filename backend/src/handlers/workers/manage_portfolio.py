"""
Worker Portfolio Handler.
POST   /portfolio              Body: { "image": "data:image/jpeg;base64,...", "description": "..." }
DELETE /portfolio/{itemId}     removes the photo and its stored image

Only workers keep a portfolio, and only the owner can remove an item.
"""
import uuid
import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.models import MAX_PORTFOLIO_ITEMS, Role
from shared.auth import get_user_sub
from shared.dynamo import query
from shared.profiles import get_profile
from shared.s3_utils import delete_media, generate_presigned_url, upload_media
from shared.utils import format_response, parse_body, get_path_param, to_iso, utc_now, is_conflict

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def add_item(worker_id: str, body: dict):
    image = body.get('image')
    if not image:
        return format_response(400, {'error': 'Envie uma foto.'})

    existing = query(config.PORTFOLIO_TABLE, index_name='byWorker', key_condition=Key('worker_id').eq(worker_id))
    if len(existing) >= MAX_PORTFOLIO_ITEMS:
        return format_response(409, {'error': f'Limite de {MAX_PORTFOLIO_ITEMS} fotos no portfólio.'})

    try:
        image_key = upload_media(image, f"portfolio/{worker_id}")
    except ValueError as e:
        return format_response(400, {'error': str(e)})

    item = {
        'id': str(uuid.uuid4()),
        'worker_id': worker_id,
        'image_url': image_key,
        'description': (body.get('description') or '').strip(),
        'created_at': to_iso(utc_now())
    }
    dynamodb.Table(config.PORTFOLIO_TABLE).put_item(Item=item)
    logger.info(f"Worker {worker_id} added portfolio item {item['id']}")

    return format_response(201, {'item': {**item, 'image_url': generate_presigned_url(image_key)}})


def delete_item(worker_id: str, item_id: str):
    portfolio_table = dynamodb.Table(config.PORTFOLIO_TABLE)
    try:
        response = portfolio_table.delete_item(
            Key={'id': item_id},
            ConditionExpression='worker_id = :wid',
            ExpressionAttributeValues={':wid': worker_id},
            ReturnValues='ALL_OLD'
        )
    except ClientError as e:
        if is_conflict(e):
            return format_response(404, {'error': 'Portfolio item not found'})
        raise

    delete_media((response.get('Attributes') or {}).get('image_url'))
    return format_response(200, {'message': 'Foto removida.', 'itemId': item_id})


def handler(event, context):
    log_event(event, context)

    try:
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        if event.get('httpMethod') == 'DELETE':
            item_id = get_path_param(event, 'itemId')
            if not item_id:
                return format_response(400, {'error': 'Missing itemId'})
            return delete_item(user_id, item_id)

        profile = get_profile(user_id)
        if not profile or Role.WORKER not in (profile.get('allowed_roles') or []):
            return format_response(403, {'error': 'Only workers have a portfolio'})
        return add_item(user_id, parse_body(event))

    except Exception as e:
        logger.error(f"Error managing portfolio: {e}")
        return format_response(500, {'error': str(e)})
