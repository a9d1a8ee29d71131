"""
Who is calling: Cognito claims from the API Gateway authorizer, role routing
for a session and the ban rule applied to profile rows.
"""
from datetime import datetime
from typing import Optional

from .models import Role
from .utils import parse_iso, utc_now


def _claims(event: dict) -> dict:
    try:
        return event['requestContext']['authorizer']['claims'] or {}
    except (KeyError, TypeError):
        return {}


def get_user_sub(event: dict) -> Optional[str]:
    """
    Cognito sub of the caller. Profiles, jobs and notifications are all keyed
    by it, so handlers answer 401 when it is missing.
    """
    return _claims(event).get('sub')


def get_user_email(event: dict) -> Optional[str]:
    return _claims(event).get('email')


def get_user_groups(event: dict) -> list:
    """Cognito groups of the caller (client, worker, partner, admin)."""
    groups = _claims(event).get('cognito:groups') or []
    if isinstance(groups, str):
        # The authorizer flattens the list into "a,b" or "[a b]"
        groups = groups.strip('[]').replace(' ', ',').split(',')
    return [g for g in groups if g]


def is_admin(event: dict) -> bool:
    return Role.ADMIN in get_user_groups(event)


def is_partner(event: dict) -> bool:
    return Role.PARTNER in get_user_groups(event)


def resolve_role(allowed_roles: list, preferred_role: str = None) -> str:
    """
    Pick the role a session is routed to.

    Admin and partner accounts always land on their own panels. Otherwise the
    role chosen on the login screen wins when the account holds it, and the
    first allowed role is the fallback.
    """
    roles = list(allowed_roles or [])
    if Role.ADMIN in roles:
        return Role.ADMIN
    if Role.PARTNER in roles:
        return Role.PARTNER
    if preferred_role and preferred_role in roles:
        return preferred_role
    return roles[0] if roles else Role.CLIENT


def is_banned(profile: dict, now: datetime = None) -> bool:
    """
    A profile is banned while inactive and either without an end date
    (indefinite) or with punishment_until still in the future.
    """
    if not profile or profile.get('active', True) is not False:
        return False
    until = parse_iso(profile.get('punishment_until'))
    if until is None:
        return True
    return until > (now or utc_now())
