"""
List Appeals Handler.
GET /appeals                 (the caller's own appeals)
GET /appeals?view=admin      (admins: pending appeals, ?status= to change)
"""
from boto3.dynamodb.conditions import Attr, Key
from shared.config import config
from shared.logging import logger, log_event
from shared.models import AppealStatus
from shared.auth import get_user_sub, is_admin
from shared.dynamo import query, scan
from shared.profiles import get_profile, display_name
from shared.utils import format_response, get_query_param


def handler(event, context):
    log_event(event, context)

    try:
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        if get_query_param(event, 'view') == 'admin':
            if not is_admin(event):
                return format_response(403, {'error': 'Admin access required'})
            status = get_query_param(event, 'status', AppealStatus.PENDING)
            appeals = scan(config.APPEALS_TABLE, Attr('status').eq(status))
            for appeal in appeals:
                appeal['user_name'] = display_name(get_profile(appeal['user_id']))
        else:
            appeals = query(
                config.APPEALS_TABLE,
                index_name='byUser',
                key_condition=Key('user_id').eq(user_id)
            )

        appeals.sort(key=lambda a: a.get('created_at', ''), reverse=True)
        return format_response(200, {'appeals': appeals, 'total': len(appeals)})

    except Exception as e:
        logger.error(f"Error listing appeals: {e}")
        return format_response(500, {'error': str(e)})
