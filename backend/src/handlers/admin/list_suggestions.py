"""
Admin List Suggestions Handler.
GET /admin/suggestions
Free-text categories typed under "Outros", newest first, with who suggested them.
"""
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import is_admin
from shared.dynamo import scan
from shared.profiles import get_profile, display_name
from shared.utils import format_response


def handler(event, context):
    log_event(event, context)

    try:
        if not is_admin(event):
            return format_response(403, {'error': 'Admin access required'})

        suggestions = scan(config.SUGGESTIONS_TABLE)
        suggestions.sort(key=lambda s: s.get('created_at', ''), reverse=True)
        names = {}
        for suggestion in suggestions:
            user_id = suggestion.get('user_id')
            if user_id not in names:
                names[user_id] = display_name(get_profile(user_id))
            suggestion['user_name'] = names[user_id]

        return format_response(200, {'suggestions': suggestions, 'total': len(suggestions)})

    except Exception as e:
        logger.error(f"Error listing suggestions: {e}")
        return format_response(500, {'error': str(e)})
