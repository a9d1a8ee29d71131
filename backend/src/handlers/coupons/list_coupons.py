"""
List Coupons Handler.
GET /coupons                   active partners with coupons still in stock
GET /coupons?view=partner      the calling partner's own coupons
"""
from boto3.dynamodb.conditions import Attr
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_email, is_partner
from shared.dynamo import scan
from shared.partners import get_partner_by_email
from shared.utils import format_response, get_query_param


def handler(event, context):
    log_event(event, context)

    try:
        if get_query_param(event, 'view') == 'partner':
            if not is_partner(event):
                return format_response(403, {'error': 'Partner access required'})
            partner = get_partner_by_email(get_user_email(event))
            if not partner:
                return format_response(404, {'error': 'Partner not found'})
            coupons = scan(config.COUPONS_TABLE, Attr('partner_id').eq(partner['id']))
            return format_response(200, {
                'partner': {k: v for k, v in partner.items() if k != 'coupon_pin_hash'},
                'pinSet': bool(partner.get('coupon_pin_hash')),
                'coupons': coupons
            })

        partners = scan(config.PARTNERS_TABLE, Attr('active').eq(True))
        coupons = scan(config.COUPONS_TABLE, Attr('active').eq(True) & Attr('available_quantity').gt(0))

        partner_ids = {p['id'] for p in partners}
        coupons = [c for c in coupons if c.get('partner_id') in partner_ids]
        partners = [{k: v for k, v in p.items() if k != 'coupon_pin_hash'} for p in partners]

        return format_response(200, {'partners': partners, 'coupons': coupons})

    except Exception as e:
        logger.error(f"Error listing coupons: {e}")
        return format_response(500, {'error': str(e)})
