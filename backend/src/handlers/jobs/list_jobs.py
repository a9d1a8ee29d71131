"""
List Jobs Handler.
GET /jobs?view=client|worker|available
Returns the caller's jobs as a client, as a worker (active and history),
or the pending jobs a worker may accept.
"""
from shared.logging import logger, log_event
from shared.auth import get_user_sub
from shared.jobs import (
    get_client_jobs, get_worker_jobs, list_open_jobs,
    is_visible_to_worker, split_worker_jobs,
)
from shared.s3_utils import generate_presigned_url
from shared.utils import format_response, get_query_param


def _sign_evidence(job: dict) -> dict:
    signed = dict(job)
    for field in ('worker_evidence_url', 'client_evidence_url'):
        if signed.get(field):
            signed[field] = generate_presigned_url(signed[field])
    return signed


def handler(event, context):
    log_event(event, context)

    try:
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        view = get_query_param(event, 'view', 'client')

        if view == 'client':
            jobs = [_sign_evidence(j) for j in get_client_jobs(user_id)]
            return format_response(200, {'jobs': jobs, 'total': len(jobs)})

        if view == 'worker':
            jobs = [_sign_evidence(j) for j in get_worker_jobs(user_id)]
            grouped = split_worker_jobs(jobs)
            return format_response(200, {
                'active': grouped['active'],
                'history': grouped['history'],
                'hasActiveJob': bool(grouped['active'])
            })

        if view == 'available':
            jobs = [
                j for j in list_open_jobs()
                if is_visible_to_worker(j, user_id) and j.get('client_id') != user_id
            ]
            jobs.sort(key=lambda j: j.get('created_at', ''), reverse=True)
            return format_response(200, {'jobs': jobs, 'total': len(jobs)})

        return format_response(400, {'error': f'Unknown view: {view}'})

    except Exception as e:
        logger.error(f"Error listing jobs: {e}")
        return format_response(500, {'error': str(e)})
