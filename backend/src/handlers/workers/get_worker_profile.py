"""
Get Worker Profile Handler.
GET /workers/{workerId}
Public page of a worker: profile, portfolio photos and client reviews.
"""
from boto3.dynamodb.conditions import Key
from shared.config import config
from shared.logging import logger, log_event
from shared.models import JobStatus, Role
from shared.auth import get_user_sub
from shared.dynamo import query
from shared.jobs import get_worker_jobs
from shared.profiles import get_profile, display_name, public_worker_view
from shared.s3_utils import generate_presigned_url
from shared.utils import format_response, get_path_param


def list_portfolio(worker_id: str) -> list:
    items = query(config.PORTFOLIO_TABLE, index_name='byWorker', key_condition=Key('worker_id').eq(worker_id))
    items.sort(key=lambda i: i.get('created_at', ''), reverse=True)
    for item in items:
        item['image_url'] = generate_presigned_url(item.get('image_url'))
    return items


def list_reviews(worker_id: str) -> list:
    """Rated, completed jobs of the worker, newest first, with the client's name."""
    reviews = []
    names = {}
    for job in get_worker_jobs(worker_id):
        if job.get('status') != JobStatus.COMPLETED or not job.get('rating'):
            continue
        client_id = job.get('client_id')
        if client_id not in names:
            names[client_id] = display_name(get_profile(client_id), 'Cliente')
        reviews.append({
            'jobId': job['id'],
            'title': job.get('title'),
            'rating': int(job['rating']),
            'comment': job.get('comment', ''),
            'clientName': names[client_id],
            'completedAt': job.get('completed_at')
        })
    reviews.sort(key=lambda r: r.get('completedAt') or '', reverse=True)
    return reviews


def handler(event, context):
    log_event(event, context)

    try:
        if not get_user_sub(event):
            return format_response(401, {'error': 'Unauthorized'})

        worker_id = get_path_param(event, 'workerId')
        worker = get_profile(worker_id) if worker_id else None
        if not worker or Role.WORKER not in (worker.get('allowed_roles') or []):
            return format_response(404, {'error': 'Worker not found'})

        return format_response(200, {
            'worker': public_worker_view(worker),
            'portfolio': list_portfolio(worker_id),
            'reviews': list_reviews(worker_id)
        })

    except Exception as e:
        logger.error(f"Error getting worker profile: {e}")
        return format_response(500, {'error': str(e)})
