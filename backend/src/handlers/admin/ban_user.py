"""
Ban User Handler.
POST /admin/users/{userId}/ban
Body: { "action": "ban" | "unban", "banType": "7days" | "indefinite" }
"""
from shared.logging import logger, log_event
from shared.models import BanType
from shared.auth import is_admin
from shared.profiles import get_profile, ban_profile, unban_profile
from shared.notifications import notify_user_banned, notify_user_unbanned
from shared.utils import format_response, parse_body, get_path_param, to_iso


def handler(event, context):
    log_event(event, context)

    try:
        if not is_admin(event):
            return format_response(403, {'error': 'Admin access required'})

        user_id = get_path_param(event, 'userId')
        body = parse_body(event)
        action = body.get('action', 'ban')

        if not user_id or not get_profile(user_id):
            return format_response(404, {'error': 'User not found'})

        if action == 'unban':
            unban_profile(user_id)
            notify_user_unbanned(user_id)
            return format_response(200, {'message': 'Usuário reativado.', 'userId': user_id})

        if action != 'ban':
            return format_response(400, {'error': 'Invalid action'})

        ban_type = body.get('banType', BanType.SEVEN_DAYS)
        if ban_type not in (BanType.SEVEN_DAYS, BanType.INDEFINITE):
            return format_response(400, {'error': 'Invalid ban type'})

        until = ban_profile(user_id, ban_type)
        notify_user_banned(user_id, ban_type, until)

        return format_response(200, {
            'message': 'Usuário banido.',
            'userId': user_id,
            'punishmentUntil': to_iso(until) if until else None
        })

    except Exception as e:
        logger.error(f"Error banning user: {e}")
        return format_response(500, {'error': str(e)})
