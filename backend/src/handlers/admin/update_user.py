"""
Admin Update User Handler.
PUT /admin/users/{userId}
Body: { "fullName": "...", "points": 120, "allowedRoles": ["client", "worker"], "level": "gold" | "auto" }

A level set here is pinned with level_admin_override until an admin sets
it back to "auto", which recomputes it from the worker's stats.
"""
import boto3
from shared.config import config
from shared.logging import logger, log_event
from shared.models import Role
from shared.auth import is_admin
from shared.gamification import LEVEL_ORDER, resolve_level
from shared.profiles import get_profile
from shared.notifications import notify_user_profile_updated
from shared.utils import format_response, parse_body, parse_int, get_path_param

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)

AUTO_LEVEL = 'auto'


def handler(event, context):
    log_event(event, context)

    try:
        if not is_admin(event):
            return format_response(403, {'error': 'Admin access required'})

        user_id = get_path_param(event, 'userId')
        profile = get_profile(user_id) if user_id else None
        if not profile:
            return format_response(404, {'error': 'User not found'})

        body = parse_body(event)
        sets = []
        values = {}
        names = {}
        changes = []

        if 'fullName' in body:
            full_name = (body.get('fullName') or '').strip()
            if not full_name:
                return format_response(400, {'error': 'Nome não pode ser vazio.'})
            sets.append('full_name = :name')
            values[':name'] = full_name
            changes.append('nome')

        if 'points' in body:
            try:
                points = parse_int(body['points'])
            except ValueError:
                return format_response(400, {'error': 'Pontos inválidos.'})
            if points < 0:
                return format_response(400, {'error': 'Pontos inválidos.'})
            sets.append('points = :points')
            values[':points'] = points
            changes.append('pontos')

        if 'allowedRoles' in body:
            roles = body.get('allowedRoles') or []
            if not roles or any(r not in Role.ALL for r in roles):
                return format_response(400, {'error': 'Perfis de acesso inválidos.'})
            sets.append('allowed_roles = :roles')
            values[':roles'] = list(dict.fromkeys(roles))
            changes.append('perfis de acesso')

        if 'level' in body:
            level = body.get('level')
            if level == AUTO_LEVEL:
                stats = {**profile, 'level_admin_override': False}
                if ':points' in values:
                    stats['points'] = values[':points']
                values[':level'] = resolve_level(stats)
                values[':override'] = False
            elif level in LEVEL_ORDER:
                values[':level'] = level
                values[':override'] = True
            else:
                return format_response(400, {'error': 'Nível inválido.'})
            sets.append('#lvl = :level, level_admin_override = :override')
            names['#lvl'] = 'level'
            changes.append('nível')

        if not sets:
            return format_response(400, {'error': 'Nothing to update'})

        params = {
            'Key': {'id': user_id},
            'UpdateExpression': 'SET ' + ', '.join(sets),
            'ExpressionAttributeValues': values
        }
        if names:
            params['ExpressionAttributeNames'] = names

        profiles_table = dynamodb.Table(config.PROFILES_TABLE)
        profiles_table.update_item(**params)

        notify_user_profile_updated(user_id, changes)
        logger.info(f"Admin updated {user_id}: {changes}")

        return format_response(200, {'message': 'Usuário atualizado.', 'userId': user_id, 'changes': changes})

    except Exception as e:
        logger.error(f"Error updating user: {e}")
        return format_response(500, {'error': str(e)})
