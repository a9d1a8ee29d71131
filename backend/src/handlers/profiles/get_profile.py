"""
Get Profile Handler.
GET /profile?role=client|worker
Returns the caller's profile with the role the session should open on, the
ban state and what is still missing before the account can be used.
"""
from shared.logging import logger, log_event
from shared.models import Role
from shared.auth import get_user_sub, is_banned, resolve_role
from shared.gamification import get_level_progress
from shared.profiles import get_profile
from shared.s3_utils import generate_presigned_url
from shared.utils import format_response, get_query_param


def session_view(profile: dict, preferred_role: str = None) -> dict:
    role = resolve_role(profile.get('allowed_roles'), preferred_role)
    banned = is_banned(profile)
    return {
        'profile': {**profile, 'avatar_url': generate_presigned_url(profile.get('avatar_url'))},
        'role': role,
        'isBanned': banned,
        'punishmentUntil': profile.get('punishment_until') if banned else None,
        'needsCompletion': not profile.get('phone') or not profile.get('cpf'),
        'needsSpecialty': role == Role.WORKER and not profile.get('specialty'),
        'levelProgress': get_level_progress(
            int(profile.get('points', 0) or 0),
            float(profile.get('rating', 0) or 0),
            int(profile.get('completed_jobs', 0) or 0),
            profile.get('level')
        )
    }


def handler(event, context):
    log_event(event, context)

    try:
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        profile = get_profile(user_id)
        if not profile:
            return format_response(404, {'error': 'Profile not found'})

        return format_response(200, session_view(profile, get_query_param(event, 'role')))

    except Exception as e:
        logger.error(f"Error getting profile: {e}")
        return format_response(500, {'error': str(e)})
