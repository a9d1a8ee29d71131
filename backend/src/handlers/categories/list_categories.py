"""
List Categories Handler.
GET /categories
Service categories by name; "Outros" is always offered last.
"""
from shared.config import config
from shared.logging import logger, log_event
from shared.models import OTHER_CATEGORY, OTHER_CATEGORY_ENTRY
from shared.dynamo import scan
from shared.utils import format_response, normalize_text


def sorted_categories(rows: list) -> list:
    categories = [c for c in rows if c.get('name') and c['name'] != OTHER_CATEGORY]
    categories.sort(key=lambda c: normalize_text(c['name']))
    categories.append(dict(OTHER_CATEGORY_ENTRY))
    return categories


def handler(event, context):
    log_event(event, context)

    try:
        categories = sorted_categories(scan(config.CATEGORIES_TABLE))
        return format_response(200, {'categories': categories})

    except Exception as e:
        logger.error(f"Error listing categories: {e}")
        return format_response(500, {'error': str(e)})
