"""
Resolve Appeal Handler.
POST /admin/appeals/{appealId}/resolve
Body: { "decision": "approved" | "rejected" }

Approval reactivates the account, clears the punishment and the suspicious
flag and restores the level held before the ban. The status condition makes
each appeal resolve exactly once.
"""
import boto3
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger, log_event
from shared.models import AppealStatus
from shared.auth import get_user_sub, is_admin
from shared.profiles import unban_profile
from shared.notifications import notify_appeal_resolved
from shared.utils import format_response, parse_body, get_path_param, to_iso, utc_now, is_conflict

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    log_event(event, context)

    try:
        if not is_admin(event):
            return format_response(403, {'error': 'Admin access required'})

        appeal_id = get_path_param(event, 'appealId')
        decision = parse_body(event).get('decision')
        if decision not in (AppealStatus.APPROVED, AppealStatus.REJECTED):
            return format_response(400, {'error': 'Invalid decision'})

        appeals_table = dynamodb.Table(config.APPEALS_TABLE)
        appeal = appeals_table.get_item(Key={'id': appeal_id}).get('Item') if appeal_id else None
        if not appeal:
            return format_response(404, {'error': 'Appeal not found'})

        try:
            appeals_table.update_item(
                Key={'id': appeal_id},
                UpdateExpression='SET #status = :decision, resolved_at = :ts, resolved_by = :admin',
                ConditionExpression='#status = :pending',
                ExpressionAttributeNames={'#status': 'status'},
                ExpressionAttributeValues={
                    ':decision': decision,
                    ':pending': AppealStatus.PENDING,
                    ':ts': to_iso(utc_now()),
                    ':admin': get_user_sub(event)
                }
            )
        except ClientError as e:
            if is_conflict(e):
                return format_response(409, {'error': 'Appeal was already resolved'})
            raise

        approved = decision == AppealStatus.APPROVED
        if approved:
            unban_profile(appeal['user_id'])
        notify_appeal_resolved(appeal['user_id'], approved)

        logger.info(f"Appeal {appeal_id} {decision}")

        return format_response(200, {'message': f'Recurso {"aprovado" if approved else "rejeitado"}.', 'appealId': appeal_id})

    except Exception as e:
        logger.error(f"Error resolving appeal: {e}")
        return format_response(500, {'error': str(e)})
