"""
Partner Coupon Management Handler.
POST   /partner/pin                  Body: { "pin": "1234" }  (first time only)
POST   /partner/coupons              Body: { "title", "description", "cost", "quantity", "pin" }
DELETE /partner/coupons/{couponId}   deactivates the coupon
GET    /partner/redemptions          redemptions of the partner's coupons

Creating a coupon requires the partner's PIN.
"""
import uuid
import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_email, is_partner
from shared.dynamo import scan
from shared.partners import get_partner_by_email, hash_pin, is_valid_pin, verify_pin
from shared.profiles import get_profile, display_name
from shared.utils import format_response, parse_body, parse_int, get_path_param, to_iso, utc_now, is_conflict

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def set_pin(partner: dict, body: dict):
    pin = str(body.get('pin') or '')
    if not is_valid_pin(pin):
        return format_response(400, {'error': 'PIN deve ter 4 dígitos.'})

    partners_table = dynamodb.Table(config.PARTNERS_TABLE)
    try:
        partners_table.update_item(
            Key={'id': partner['id']},
            UpdateExpression='SET coupon_pin_hash = :hash',
            ConditionExpression='attribute_not_exists(coupon_pin_hash)',
            ExpressionAttributeValues={':hash': hash_pin(partner['id'], pin)}
        )
    except ClientError as e:
        if is_conflict(e):
            return format_response(409, {'error': 'PIN already set'})
        raise
    return format_response(200, {'message': 'Senha definida com sucesso!'})


def create_coupon(partner: dict, body: dict):
    if not verify_pin(partner, str(body.get('pin') or '')):
        return format_response(403, {'error': 'Senha incorreta!'})

    title = (body.get('title') or '').strip()
    if not title:
        return format_response(400, {'error': 'Informe o título do cupom.'})
    try:
        cost = parse_int(body.get('cost'))
        quantity = parse_int(body.get('quantity'))
    except ValueError:
        return format_response(400, {'error': 'Custo e quantidade devem ser números.'})
    if cost <= 0 or quantity <= 0:
        return format_response(400, {'error': 'Custo e quantidade devem ser positivos.'})

    coupon = {
        'id': str(uuid.uuid4()),
        'partner_id': partner['id'],
        'title': title,
        'description': (body.get('description') or '').strip(),
        'cost': cost,
        'total_quantity': quantity,
        'available_quantity': quantity,
        'active': True,
        'created_at': to_iso(utc_now())
    }
    dynamodb.Table(config.COUPONS_TABLE).put_item(Item=coupon)
    logger.info(f"Partner {partner['id']} created coupon {coupon['id']}")
    return format_response(201, {'message': 'Cupom criado!', 'coupon': coupon})


def deactivate_coupon(partner: dict, coupon_id: str):
    coupons_table = dynamodb.Table(config.COUPONS_TABLE)
    try:
        coupons_table.update_item(
            Key={'id': coupon_id},
            UpdateExpression='SET active = :false',
            ConditionExpression='partner_id = :pid',
            ExpressionAttributeValues={':false': False, ':pid': partner['id']}
        )
    except ClientError as e:
        if is_conflict(e):
            return format_response(404, {'error': 'Coupon not found'})
        raise
    return format_response(200, {'message': 'Cupom excluído.', 'couponId': coupon_id})


def list_redemptions(partner: dict):
    redemptions = scan(config.REDEMPTIONS_TABLE, Attr('partner_id').eq(partner['id']))
    redemptions.sort(key=lambda r: r.get('redeemed_at', ''), reverse=True)
    for redemption in redemptions:
        redemption['user_name'] = display_name(get_profile(redemption['user_id']))
    return format_response(200, {'redemptions': redemptions})


def handler(event, context):
    log_event(event, context)

    try:
        if not is_partner(event):
            return format_response(403, {'error': 'Partner access required'})

        partner = get_partner_by_email(get_user_email(event))
        if not partner:
            return format_response(404, {'error': 'Partner not found'})

        method = event.get('httpMethod', 'GET')
        path = event.get('resource') or event.get('path') or ''

        if method == 'GET':
            return list_redemptions(partner)
        if method == 'DELETE':
            return deactivate_coupon(partner, get_path_param(event, 'couponId'))
        if path.endswith('/pin'):
            return set_pin(partner, parse_body(event))
        return create_coupon(partner, parse_body(event))

    except Exception as e:
        logger.error(f"Error managing coupons: {e}")
        return format_response(500, {'error': str(e)})
