"""
Upload Avatar Handler.
POST /profile/avatar
Body: { "image": "data:image/jpeg;base64,..." }
Stores the new picture, points the profile at it and drops the previous one.
"""
import boto3
from shared.config import config
from shared.logging import logger, log_event
from shared.auth import get_user_sub
from shared.profiles import get_profile
from shared.s3_utils import delete_media, generate_presigned_url, upload_media
from shared.utils import format_response, parse_body, to_iso, utc_now

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)


def handler(event, context):
    log_event(event, context)

    try:
        user_id = get_user_sub(event)
        if not user_id:
            return format_response(401, {'error': 'Unauthorized'})

        image = parse_body(event).get('image')
        if not image:
            return format_response(400, {'error': 'Envie uma foto.'})

        profile = get_profile(user_id)
        if not profile:
            return format_response(404, {'error': 'Profile not found'})

        try:
            avatar_key = upload_media(image, f"avatars/{user_id}")
        except ValueError as e:
            return format_response(400, {'error': str(e)})

        dynamodb.Table(config.PROFILES_TABLE).update_item(
            Key={'id': user_id},
            UpdateExpression='SET avatar_url = :avatar, updated_at = :ts',
            ExpressionAttributeValues={':avatar': avatar_key, ':ts': to_iso(utc_now())}
        )

        previous = profile.get('avatar_url')
        if previous and previous != avatar_key:
            delete_media(previous)

        logger.info(f"Avatar updated for {user_id}")
        return format_response(200, {'avatarUrl': generate_presigned_url(avatar_key)})

    except Exception as e:
        logger.error(f"Error uploading avatar: {e}")
        return format_response(500, {'error': str(e)})
