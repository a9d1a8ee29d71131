"""
Admin List Users Handler.
GET /admin/users?search=...&filter=all|banned|suspicious
"""
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import is_admin, is_banned
from shared.dynamo import scan
from shared.utils import format_response, get_query_param, normalize_text, utc_now


def handler(event, context):
    log_event(event, context)

    try:
        if not is_admin(event):
            return format_response(403, {'error': 'Admin access required'})

        search = normalize_text(get_query_param(event, 'search', ''))
        view = get_query_param(event, 'filter', 'all')
        now = utc_now()

        users = []
        for profile in scan(config.PROFILES_TABLE):
            banned = is_banned(profile, now)
            if view == 'banned' and not banned:
                continue
            if view == 'suspicious' and not profile.get('suspicious_flag'):
                continue
            if search:
                haystack = normalize_text(f"{profile.get('full_name', '')} {profile.get('email', '')}")
                if search not in haystack:
                    continue
            users.append({**profile, 'is_banned': banned})

        users.sort(key=lambda u: normalize_text(u.get('full_name')))
        return format_response(200, {'users': users, 'total': len(users)})

    except Exception as e:
        logger.error(f"Error listing users: {e}")
        return format_response(500, {'error': str(e)})
