"""
Notification helpers.
Every state change writes a notification row for the counterpart; the
realtime relay pushes new rows to open sessions. Writes are fire-and-forget:
a failed notification is logged and never fails the calling operation.
"""
import json
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from .config import config
from .dynamo import batch_write_items, put_item
from .logging import logger
from .models import NotificationType, BanType
from .utils import parse_iso, to_iso, utc_now


def build_notification(
    user_id: str,
    title: str,
    message: str,
    notification_type: str = NotificationType.INFO,
    action_link: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """Notification row; action_link is stored as a JSON string."""
    return {
        'id': str(uuid.uuid4()),
        'user_id': user_id,
        'title': title,
        'message': message,
        'type': notification_type,
        'action_link': json.dumps(action_link) if action_link else None,
        'read': False,
        'created_at': to_iso(now or utc_now()),
    }


def create_notification(user_id: str, title: str, message: str,
                        notification_type: str = NotificationType.INFO,
                        action_link: Optional[Dict[str, Any]] = None) -> bool:
    """Create a notification for one user."""
    if not user_id:
        return False
    item = build_notification(user_id, title, message, notification_type, action_link)
    ok = put_item(config.NOTIFICATIONS_TABLE, item)
    if not ok:
        logger.error(f"Could not notify {user_id}: {title}")
    return ok


def create_bulk_notifications(notifications: List[Dict[str, Any]]) -> bool:
    """Create many notifications at once (already built rows)."""
    if not notifications:
        return True
    return batch_write_items(config.NOTIFICATIONS_TABLE, notifications)


def job_link(job_id: str) -> Dict[str, Any]:
    return {'screen': 'jobs', 'jobId': job_id}


def chat_link(job_id: str, sender_name: str) -> Dict[str, Any]:
    return {'screen': 'chat', 'id': job_id, 'name': sender_name}


def notify_workers_new_job(workers: Iterable[dict], job_id: str, job_title: str,
                           client_name: str, city: Optional[str] = None) -> int:
    """Tell every eligible worker about a new job. Returns how many were notified."""
    where = f" em {city}" if city else ''
    rows = [
        build_notification(
            worker['id'],
            'Novo Pedido Disponível!',
            f'{client_name} criou um novo pedido: "{job_title}"{where}',
            NotificationType.JOB_UPDATE,
            job_link(job_id),
        )
        for worker in workers
    ]
    create_bulk_notifications(rows)
    return len(rows)


def notify_worker_direct_hire(worker_id: str, client_name: str, description: str) -> bool:
    return create_notification(
        worker_id,
        'Nova Proposta Direta',
        f'{client_name} quer te contratar: {description}',
        NotificationType.JOB_UPDATE,
        {'screen': 'jobs'},
    )


def notify_client_job_accepted(client_id: str, worker_name: str, job_title: str, job_id: str) -> bool:
    return create_notification(
        client_id,
        'Pedido Aceito!',
        f'{worker_name} aceitou seu pedido: "{job_title}"',
        NotificationType.JOB_UPDATE,
        job_link(job_id),
    )


def notify_client_job_finished(client_id: str, worker_name: str, job_title: str, job_id: str) -> bool:
    return create_notification(
        client_id,
        'Serviço Finalizado!',
        f'{worker_name} finalizou o serviço: "{job_title}". Confirme e avalie o trabalho.',
        NotificationType.JOB_UPDATE,
        job_link(job_id),
    )


def notify_job_cancelled(recipient_id: str, canceller_name: str, job_title: str,
                         reason: str, by_client: bool) -> bool:
    """Tell the counterpart a job was cancelled, with the reason given."""
    if by_client:
        title = 'Pedido Cancelado'
        message = f'{canceller_name} cancelou o pedido: "{job_title}". Motivo: {reason}'
        link = {'screen': 'history'}
    else:
        title = 'Serviço Cancelado'
        message = f'{canceller_name} cancelou o serviço: "{job_title}". Motivo: {reason}'
        link = None
    return create_notification(recipient_id, title, message, NotificationType.JOB_UPDATE, link)


def notify_worker_job_completed(worker_id: str, client_name: str, job_title: str, rating: int) -> bool:
    plural = 's' if rating > 1 else ''
    return create_notification(
        worker_id,
        'Serviço Confirmado!',
        f'{client_name} confirmou e avaliou seu serviço "{job_title}" com {rating} estrela{plural}',
        NotificationType.JOB_UPDATE,
        {'screen': 'history'},
    )


def notify_user_banned(user_id: str, ban_type: str, until: Optional[datetime] = None) -> bool:
    if ban_type == BanType.SEVEN_DAYS and until:
        message = (
            f'Sua conta foi suspensa por {config.BAN_DAYS} dias. '
            f'Você poderá usar o app novamente em {until.strftime("%d/%m/%Y")}.'
        )
    else:
        message = 'Sua conta foi suspensa indefinidamente. Entre em contato com o suporte para mais informações.'
    return create_notification(user_id, 'Conta Suspensa', message, NotificationType.BAN)


def notify_user_unbanned(user_id: str) -> bool:
    return create_notification(
        user_id,
        'Conta Reativada',
        'Seu banimento foi removido. Você pode usar o app novamente!',
        NotificationType.ADMIN_ACTION,
    )


def notify_user_absolved(user_id: str, job_title: str) -> bool:
    return create_notification(
        user_id,
        'Auditoria Concluída',
        f'O serviço "{job_title}" foi analisado e liberado. Seus pontos foram creditados.',
        NotificationType.ADMIN_ACTION,
    )


def notify_user_profile_updated(user_id: str, changes: List[str]) -> bool:
    return create_notification(
        user_id,
        'Perfil Atualizado',
        f'O administrador atualizou seu perfil: {", ".join(changes)}',
        NotificationType.ADMIN_ACTION,
    )


def notify_appeal_resolved(user_id: str, approved: bool) -> bool:
    if approved:
        return create_notification(
            user_id, 'Recurso Aprovado',
            'Seu recurso foi aprovado! Sua conta foi reativada.',
            NotificationType.ADMIN_ACTION,
        )
    return create_notification(
        user_id, 'Recurso Rejeitado',
        'Seu recurso foi analisado e rejeitado. O banimento permanece.',
        NotificationType.ADMIN_ACTION,
    )


def notify_new_message(receiver_id: str, sender_name: str, job_id: str, text: str) -> bool:
    preview = text[:50] + ('...' if len(text) > 50 else '')
    return create_notification(
        receiver_id,
        f'Nova mensagem de {sender_name}',
        preview,
        NotificationType.CHAT,
        chat_link(job_id, sender_name),
    )


def is_visible(notification: dict, now: Optional[datetime] = None) -> bool:
    """Unread notifications always show; read ones for the retention window."""
    if not notification.get('read'):
        return True
    read_at = parse_iso(notification.get('read_at'))
    if read_at is None:
        return False
    cutoff = (now or utc_now()) - timedelta(days=config.NOTIFICATION_RETENTION_DAYS)
    return read_at >= cutoff


def filter_visible(notifications: Iterable[dict], now: Optional[datetime] = None) -> List[dict]:
    return [n for n in notifications if is_visible(n, now)]


def is_expired(notification: dict, now: Optional[datetime] = None) -> bool:
    """Read past the retention window, so the cleanup job may delete it."""
    if not notification.get('read') or not notification.get('read_at'):
        return False
    return not is_visible(notification, now)


def parse_action_link(notification: dict) -> Optional[dict]:
    """Decode the stored navigation target, ignoring malformed values."""
    raw = notification.get('action_link')
    if not raw:
        return None
    try:
        action = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning(f"Malformed action_link on notification {notification.get('id')}")
        return None
    return action if isinstance(action, dict) else None


def notify_support_reply(user_id: str, text: str) -> bool:
    preview = text[:50] + ('...' if len(text) > 50 else '')
    return create_notification(
        user_id,
        'Resposta do Suporte',
        preview,
        NotificationType.CHAT,
        {'screen': 'support'},
    )
