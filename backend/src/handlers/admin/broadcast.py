"""
Broadcast Handler.
POST /admin/broadcast
Body: { "title": "...", "message": "...", "roles": ["client", "worker"], "type": "promo" }
Sends one notification to every account holding any of the selected roles.
"""
from shared.config import config
from shared.logging import logger, log_event
from shared.models import NotificationType, Role
from shared.auth import is_admin
from shared.dynamo import scan
from shared.notifications import build_notification, create_bulk_notifications
from shared.utils import format_response, parse_body, utc_now

BROADCAST_TYPES = (NotificationType.INFO, NotificationType.PROMO, NotificationType.ADMIN_ACTION)


def select_recipients(profiles, roles):
    wanted = set(roles)
    return [p for p in profiles if wanted.intersection(p.get('allowed_roles') or [])]


def handler(event, context):
    log_event(event, context)

    try:
        if not is_admin(event):
            return format_response(403, {'error': 'Admin access required'})

        body = parse_body(event)
        title = (body.get('title') or '').strip()
        message = (body.get('message') or '').strip()
        roles = body.get('roles') or [Role.CLIENT, Role.WORKER]
        notification_type = body.get('type', NotificationType.INFO)

        if not title or not message:
            return format_response(400, {'error': 'Título e mensagem são obrigatórios.'})
        if any(r not in Role.ALL for r in roles):
            return format_response(400, {'error': 'Invalid roles'})
        if notification_type not in BROADCAST_TYPES:
            return format_response(400, {'error': 'Invalid notification type'})

        recipients = select_recipients(scan(config.PROFILES_TABLE), roles)
        now = utc_now()
        rows = [
            build_notification(p['id'], title, message, notification_type, now=now)
            for p in recipients
        ]

        if not create_bulk_notifications(rows):
            return format_response(500, {'error': 'Failed to send broadcast'})

        logger.info(f"Broadcast '{title}' sent to {len(rows)} users ({roles})")

        return format_response(200, {'message': 'Notificação enviada!', 'recipients': len(rows)})

    except Exception as e:
        logger.error(f"Error broadcasting: {e}")
        return format_response(500, {'error': str(e)})
