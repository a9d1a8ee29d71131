"""
Configuration module for Lambda handlers.
Loads all environment variables needed by the marketplace.
"""
import os


class Config:
    """Centralized configuration from environment variables."""

    # AWS Region
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')

    # DynamoDB Tables
    JOBS_TABLE = os.environ.get('JOBS_TABLE', 'jobs')
    PROFILES_TABLE = os.environ.get('PROFILES_TABLE', 'profiles')
    NOTIFICATIONS_TABLE = os.environ.get('NOTIFICATIONS_TABLE', 'notifications')
    MESSAGES_TABLE = os.environ.get('MESSAGES_TABLE', 'messages')
    APPEALS_TABLE = os.environ.get('APPEALS_TABLE', 'punishment_appeals')
    COUPONS_TABLE = os.environ.get('COUPONS_TABLE', 'coupons')
    REDEMPTIONS_TABLE = os.environ.get('REDEMPTIONS_TABLE', 'coupon_redemptions')
    PARTNERS_TABLE = os.environ.get('PARTNERS_TABLE', 'partners')
    SUGGESTIONS_TABLE = os.environ.get('SUGGESTIONS_TABLE', 'category_suggestions')
    CATEGORIES_TABLE = os.environ.get('CATEGORIES_TABLE', 'service_categories')
    PORTFOLIO_TABLE = os.environ.get('PORTFOLIO_TABLE', 'worker_portfolio')
    SUPPORT_TABLE = os.environ.get('SUPPORT_TABLE', 'support_messages')

    # SQS Queues
    REALTIME_QUEUE_URL = os.environ.get('REALTIME_QUEUE_URL', '')

    # S3 Buckets
    MEDIA_BUCKET = os.environ.get('MEDIA_BUCKET', '')

    # Calendar days for the daily cap and fraud checks (Brasília by default)
    LOCAL_UTC_OFFSET_HOURS = int(os.environ.get('LOCAL_UTC_OFFSET_HOURS', '-3'))

    # Read notifications stay visible for this many days
    NOTIFICATION_RETENTION_DAYS = int(os.environ.get('NOTIFICATION_RETENTION_DAYS', '3'))

    # Temporary ban length used by moderation
    BAN_DAYS = int(os.environ.get('BAN_DAYS', '7'))

    # Handler log level (DEBUG, INFO, WARNING, ...)
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()


config = Config()
