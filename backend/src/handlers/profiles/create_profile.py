"""
Create Profile.
Cognito post-confirmation trigger. Creates the profile for a new account
with the registration bonus. The role picked at sign-up becomes the first
(primary) allowed role.
"""
import boto3
from botocore.exceptions import ClientError
from shared.config import config
from shared.logging import logger
from shared.models import PointsRules, Role, WorkerLevel
from shared.utils import to_iso, utc_now, is_conflict

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)

SIGNUP_ROLES = (Role.CLIENT, Role.WORKER)


def build_profile(user_id: str, attributes: dict) -> dict:
    role = attributes.get('custom:role')
    if role not in SIGNUP_ROLES:
        role = Role.CLIENT
    return {
        'id': user_id,
        'email': (attributes.get('email') or '').lower(),
        'full_name': attributes.get('name') or '',
        'allowed_roles': [role],
        'points': PointsRules.REGISTER,
        'level': WorkerLevel.BRONZE,
        'level_admin_override': False,
        'active': True,
        'suspicious_flag': False,
        'rating': 0,
        'completed_jobs': 0,
        'created_at': to_iso(utc_now())
    }


def handler(event, context):
    attributes = event.get('request', {}).get('userAttributes', {})
    user_id = attributes.get('sub') or event.get('userName')

    profiles_table = dynamodb.Table(config.PROFILES_TABLE)
    try:
        profiles_table.put_item(
            Item=build_profile(user_id, attributes),
            ConditionExpression='attribute_not_exists(id)'
        )
        logger.info(f"Profile created for {user_id} with {PointsRules.REGISTER} points")
    except ClientError as e:
        if not is_conflict(e):
            raise
        logger.info(f"Profile for {user_id} already exists")

    # Cognito triggers must hand the event back
    return event
