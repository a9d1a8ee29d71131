"""
Partner helpers: resolving the partner row behind a login and the coupon PIN
partners set before they can create coupons.
"""
import hashlib
import hmac
from typing import Optional

import boto3
from boto3.dynamodb.conditions import Attr

from .config import config

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)

MIN_PIN_LENGTH = 4


def get_partner_by_email(email: Optional[str]) -> Optional[dict]:
    """Partners are linked to accounts through their contact email."""
    if not email:
        return None
    partners_table = dynamodb.Table(config.PARTNERS_TABLE)
    params = {'FilterExpression': Attr('email').eq(email.strip().lower())}
    while True:
        response = partners_table.scan(**params)
        items = response.get('Items', [])
        if items:
            return items[0]
        if not response.get('LastEvaluatedKey'):
            return None
        params['ExclusiveStartKey'] = response['LastEvaluatedKey']


def hash_pin(partner_id: str, pin: str) -> str:
    return hashlib.sha256(f"{partner_id}:{pin}".encode('utf-8')).hexdigest()


def is_valid_pin(pin: Optional[str]) -> bool:
    return bool(pin) and pin.isdigit() and len(pin) >= MIN_PIN_LENGTH


def verify_pin(partner: dict, pin: Optional[str]) -> bool:
    stored = partner.get('coupon_pin_hash')
    if not stored or not pin:
        return False
    return hmac.compare_digest(stored, hash_pin(partner['id'], pin))
