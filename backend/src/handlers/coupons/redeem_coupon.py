"""
Redeem Coupon Handler.
POST /coupons/{couponId}/redeem   (the coupon id is read from the partner's QR code)

One DynamoDB transaction takes a unit from the coupon, deducts the points
from the user and records the redemption. Either all three happen or none.
Responds with {success, message} so the app can show the outcome as-is.
"""
import uuid
import boto3
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_sub
from shared.utils import format_response, get_path_param, to_iso, utc_now

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)

# Position of each write in the transaction, used to explain a cancellation
COUPON_ITEM, PROFILE_ITEM = 0, 1

FAILURE_MESSAGES = {
    COUPON_ITEM: 'Cupom esgotado ou indisponível.',
    PROFILE_ITEM: 'Pontos insuficientes.',
}


def cancellation_message(error: ClientError) -> str:
    reasons = error.response.get('CancellationReasons') or []
    for index, reason in enumerate(reasons):
        if reason.get('Code') == 'ConditionalCheckFailed':
            return FAILURE_MESSAGES.get(index, 'Não foi possível resgatar o cupom.')
    return 'Não foi possível resgatar o cupom.'


def redeem_coupon(coupon: dict, user_id: str) -> dict:
    """
    Run the redemption transaction.

    Returns:
        {'success': bool, 'message': str} plus the redemption id on success
    """
    cost = int(coupon.get('cost', 0))
    redemption_id = str(uuid.uuid4())
    timestamp = to_iso(utc_now())

    try:
        dynamodb.meta.client.transact_write_items(
            TransactItems=[
                {
                    'Update': {
                        'TableName': config.COUPONS_TABLE,
                        'Key': {'id': {'S': coupon['id']}},
                        'UpdateExpression': 'SET available_quantity = available_quantity - :one',
                        'ConditionExpression': 'active = :true AND available_quantity > :zero',
                        'ExpressionAttributeValues': {
                            ':one': {'N': '1'},
                            ':zero': {'N': '0'},
                            ':true': {'BOOL': True}
                        }
                    }
                },
                {
                    'Update': {
                        'TableName': config.PROFILES_TABLE,
                        'Key': {'id': {'S': user_id}},
                        'UpdateExpression': 'SET points = points - :cost',
                        'ConditionExpression': 'points >= :cost',
                        'ExpressionAttributeValues': {':cost': {'N': str(cost)}}
                    }
                },
                {
                    'Put': {
                        'TableName': config.REDEMPTIONS_TABLE,
                        'Item': {
                            'id': {'S': redemption_id},
                            'coupon_id': {'S': coupon['id']},
                            'partner_id': {'S': coupon.get('partner_id', '')},
                            'coupon_title': {'S': coupon.get('title', '')},
                            'user_id': {'S': user_id},
                            'cost_paid': {'N': str(cost)},
                            'redeemed_at': {'S': timestamp}
                        },
                        'ConditionExpression': 'attribute_not_exists(id)'
                    }
                }
            ]
        )
    except ClientError as e:
        if e.response['Error']['Code'] == 'TransactionCanceledException':
            message = cancellation_message(e)
            logger.info(f"Redemption of {coupon['id']} by {user_id} refused: {message}")
            return {'success': False, 'message': message}
        raise

    logger.info(f"Coupon {coupon['id']} redeemed by {user_id} for {cost} points")
    return {'success': True, 'message': 'Cupom resgatado com sucesso!', 'redemptionId': redemption_id}


def handler(event, context):
    log_event(event, context)

    try:
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        coupon_id = get_path_param(event, 'couponId')
        coupons_table = dynamodb.Table(config.COUPONS_TABLE)
        coupon = coupons_table.get_item(Key={'id': coupon_id}).get('Item') if coupon_id else None
        if not coupon:
            return format_response(404, {'success': False, 'message': 'Cupom não encontrado.'})

        result = redeem_coupon(coupon, user_id)
        return format_response(200 if result['success'] else 409, result)

    except Exception as e:
        logger.error(f"Error redeeming coupon: {e}")
        return format_response(500, {'success': False, 'message': str(e)})
