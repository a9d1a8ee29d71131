"""
Search Workers Handler.
GET /workers?category=Elétrica&city=Santos
Workers a client can hire directly, best level first.
"""
from shared.logging import logger, log_event
from shared.auth import get_user_sub
from shared.profiles import public_worker_view, search_workers
from shared.utils import format_response, get_query_param


def handler(event, context):
    log_event(event, context)

    try:
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        workers = search_workers(
            category=get_query_param(event, 'category'),
            city=get_query_param(event, 'city'),
            exclude_id=user_id
        )
        views = [public_worker_view(w) for w in workers]

        return format_response(200, {'workers': views, 'total': len(views)})

    except Exception as e:
        logger.error(f"Error searching workers: {e}")
        return format_response(500, {'error': str(e)})
