"""
Request/response plumbing and small value helpers used by every handler.
"""
import json
import re
import unicodedata
from datetime import datetime, timezone, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from .config import config

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Credentials': True,
    'Content-Type': 'application/json'
}


class DecimalEncoder(json.JSONEncoder):
    """DynamoDB hands numbers back as Decimal; points and counts go out as int."""

    def default(self, o):
        if isinstance(o, Decimal):
            return int(o) if o == o.to_integral_value() else float(o)
        return super().default(o)


def format_response(status_code: int, body: Any, headers: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Build the API Gateway proxy response.

    The web app calls the API from another origin, so CORS headers go on every
    response, errors included.
    """
    return {
        'statusCode': status_code,
        'headers': {**CORS_HEADERS, **(headers or {})},
        'body': json.dumps(body, cls=DecimalEncoder)
    }


def parse_body(event: dict) -> dict:
    """JSON body of the request, {} when missing or malformed."""
    body = event.get('body')
    if not body:
        return {}
    if isinstance(body, dict):
        return body
    try:
        parsed = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


def get_path_param(event: dict, param_name: str) -> Optional[str]:
    return (event.get('pathParameters') or {}).get(param_name)


def get_query_param(event: dict, param_name: str, default: str = None) -> Optional[str]:
    return (event.get('queryStringParameters') or {}).get(param_name, default)


def normalize_text(text: str) -> str:
    """
    Normalize text for comparison.
    Removes accents, punctuation, extra whitespace, and converts to lowercase,
    so "Elétrica" matches "eletrica" when filtering workers by specialty.
    """
    if not text:
        return ''
    text = unicodedata.normalize('NFKD', str(text))
    text = ''.join(c for c in text if not unicodedata.combining(c))
    text = text.lower().strip()
    text = re.sub(r'[^\w\s]', '', text)  # Remove punctuation
    text = re.sub(r'\s+', ' ', text)     # Normalize whitespace
    return text


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat()


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def local_day(dt: datetime):
    """Calendar date of a timestamp in the marketplace's local time."""
    local_tz = timezone(timedelta(hours=config.LOCAL_UTC_OFFSET_HOURS))
    return dt.astimezone(local_tz).date()


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert numbers for DynamoDB, which rejects floats.

    Raises:
        InvalidOperation: For text that is not a number, and for NaN or Infinity
    """
    if value is None or value == '':
        return None
    number = Decimal(str(value).strip())
    if not number.is_finite():
        raise InvalidOperation(f"Not a finite number: {value}")
    return number


def parse_int(value: Any) -> int:
    """Whole number from a request field. 4.7 is rejected, not truncated to 4."""
    if value is None or isinstance(value, bool):
        raise ValueError("A whole number is required")
    try:
        number = to_decimal(value)
    except ArithmeticError:
        raise ValueError(f"Not a number: {value}")
    if number is None or number != number.to_integral_value():
        raise ValueError(f"Not a whole number: {value}")
    return int(number)


# ClientError codes raised when a condition guarding a write fails
CONFLICT_ERROR_CODES = ('ConditionalCheckFailedException', 'TransactionCanceledException')


def is_conflict(error: Exception) -> bool:
    """True for a botocore ClientError caused by a failed write condition."""
    response = getattr(error, 'response', None) or {}
    return response.get('Error', {}).get('Code') in CONFLICT_ERROR_CODES
