"""
Admin Partner Management Handler.
GET    /admin/partners
POST   /admin/partners                Body: { "name", "email", "category", "logoUrl" }
DELETE /admin/partners/{partnerId}    removes the partner and deactivates its coupons

A partner logs in with the account whose e-mail matches the partner row.
"""
import uuid
import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import is_admin
from shared.dynamo import scan
from shared.partners import get_partner_by_email
from shared.validators import ValidationError, validate_email
from shared.utils import format_response, parse_body, get_path_param, normalize_text, to_iso, utc_now, is_conflict

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def list_partners():
    partners = scan(config.PARTNERS_TABLE)
    partners.sort(key=lambda p: normalize_text(p.get('name')))
    for partner in partners:
        partner.pop('coupon_pin_hash', None)
    return format_response(200, {'partners': partners, 'total': len(partners)})


def create_partner(body: dict):
    name = (body.get('name') or '').strip()
    if not name:
        return format_response(400, {'error': 'Informe o nome do parceiro.'})
    try:
        email = validate_email(body.get('email'))
    except ValidationError as e:
        return format_response(400, {'error': str(e)})

    if get_partner_by_email(email):
        return format_response(409, {'error': 'Já existe um parceiro com este e-mail.'})

    partner = {
        'id': str(uuid.uuid4()),
        'name': name,
        'email': email,
        'category': (body.get('category') or '').strip(),
        'logo_url': (body.get('logoUrl') or '').strip(),
        'created_at': to_iso(utc_now())
    }
    dynamodb.Table(config.PARTNERS_TABLE).put_item(Item=partner)
    logger.info(f"Partner {partner['id']} created for {email}")
    return format_response(201, {'message': 'Parceiro cadastrado!', 'partner': partner})


def delete_partner(partner_id: str):
    try:
        dynamodb.Table(config.PARTNERS_TABLE).delete_item(
            Key={'id': partner_id},
            ConditionExpression='attribute_exists(id)'
        )
    except ClientError as e:
        if is_conflict(e):
            return format_response(404, {'error': 'Partner not found'})
        raise

    coupons_table = dynamodb.Table(config.COUPONS_TABLE)
    coupons = scan(config.COUPONS_TABLE, Attr('partner_id').eq(partner_id) & Attr('active').eq(True))
    for coupon in coupons:
        coupons_table.update_item(
            Key={'id': coupon['id']},
            UpdateExpression='SET active = :false',
            ExpressionAttributeValues={':false': False}
        )

    logger.info(f"Partner {partner_id} deleted, {len(coupons)} coupons deactivated")
    return format_response(200, {'message': 'Parceiro removido.', 'partnerId': partner_id,
                                 'couponsDeactivated': len(coupons)})


def handler(event, context):
    log_event(event, context)

    try:
        if not is_admin(event):
            return format_response(403, {'error': 'Admin access required'})

        method = event.get('httpMethod', 'GET')
        if method == 'GET':
            return list_partners()
        if method == 'DELETE':
            partner_id = get_path_param(event, 'partnerId')
            if not partner_id:
                return format_response(400, {'error': 'Missing partnerId'})
            return delete_partner(partner_id)
        return create_partner(parse_body(event))

    except Exception as e:
        logger.error(f"Error managing partners: {e}")
        return format_response(500, {'error': str(e)})
