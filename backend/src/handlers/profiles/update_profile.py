"""
Update Profile Handler.
PUT /profile
Body: {
    "fullName": "...", "email": "...", "phone": "11912345678", "cpf": "...",
    "city": "...", "state": "SP", "bio": "...",
    "specialties": ["Elétrica", "Outros"], "otherSpecialty": "...",
    "addRole": "worker"
}
Validation errors come back as 400 with the field and, for e-mail typos,
the corrected address.
"""
import boto3
from boto3.dynamodb.conditions import Attr
from shared.config import config
from shared.logging import logger, log_event
from shared.models import OTHER_CATEGORY, Role
from shared.auth import get_user_sub
from shared.dynamo import scan
from shared.jobs import build_category_string, save_category_suggestion
from shared.profiles import get_profile
from shared.validators import ValidationError, validate_cpf, validate_email, validate_phone
from shared.utils import format_response, parse_body, to_iso, utc_now

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)

# Roles a user can add to their own account
SELF_SERVICE_ROLES = (Role.CLIENT, Role.WORKER)


def cpf_taken(cpf: str, user_id: str) -> bool:
    return any(p.get('id') != user_id for p in scan(config.PROFILES_TABLE, Attr('cpf').eq(cpf)))


def collect_updates(body: dict, profile: dict) -> dict:
    """
    Validate the submitted fields into attribute updates.

    Raises:
        ValidationError: On the first invalid field
    """
    updates = {}

    if 'fullName' in body:
        full_name = (body.get('fullName') or '').strip()
        if not full_name:
            raise ValidationError("Informe seu nome.")
        updates['full_name'] = full_name
    if 'email' in body:
        updates['email'] = validate_email(body.get('email'))
    if 'phone' in body:
        updates['phone'] = validate_phone(body.get('phone'))
    if 'cpf' in body:
        cpf = validate_cpf(body.get('cpf'))
        if cpf_taken(cpf, profile['id']):
            raise ValidationError("Este CPF já está cadastrado.")
        updates['cpf'] = cpf
    for field in ('city', 'state', 'bio'):
        if field in body:
            updates[field] = (body.get(field) or '').strip()

    if 'specialties' in body:
        selected = body.get('specialties') or []
        other = (body.get('otherSpecialty') or '').strip()
        if OTHER_CATEGORY in selected and not other:
            raise ValidationError("Descreva sua especialidade em 'Outros'.")
        try:
            updates['specialty'] = build_category_string(selected, other_text=other)
        except ValueError as e:
            raise ValidationError(str(e))

    role = body.get('addRole')
    if role:
        if role not in SELF_SERVICE_ROLES:
            raise ValidationError("Perfil de acesso inválido.")
        roles = list(profile.get('allowed_roles') or [])
        if role not in roles:
            updates['allowed_roles'] = roles + [role]

    return updates


def handler(event, context):
    log_event(event, context)

    try:
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        profile = get_profile(user_id)
        if not profile:
            return format_response(404, {'error': 'Profile not found'})

        body = parse_body(event)
        try:
            updates = collect_updates(body, profile)
        except ValidationError as e:
            response = {'error': e.message}
            if e.suggestion:
                response['suggestion'] = e.suggestion
            return format_response(400, response)

        if not updates:
            return format_response(400, {'error': 'Nothing to update'})

        names = {f'#{k}': k for k in updates}
        values = {f':{k}': v for k, v in updates.items()}
        dynamodb.Table(config.PROFILES_TABLE).update_item(
            Key={'id': user_id},
            UpdateExpression='SET ' + ', '.join(f'#{k} = :{k}' for k in updates),
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values
        )

        other = (body.get('otherSpecialty') or '').strip()
        if 'specialty' in updates and other and OTHER_CATEGORY in (body.get('specialties') or []):
            save_category_suggestion(user_id, other, to_iso(utc_now()))

        logger.info(f"Profile {user_id} updated: {sorted(updates)}")

        return format_response(200, {'message': 'Perfil atualizado!', 'profile': {**profile, **updates}})

    except Exception as e:
        logger.error(f"Error updating profile: {e}")
        return format_response(500, {'error': str(e)})
