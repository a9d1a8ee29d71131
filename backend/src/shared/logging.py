"""
Logging for the marketplace Lambdas.

Every handler logs its incoming event through log_event. Request bodies and
headers never reach the logs (they carry photos, CPF and tokens), and the
personal fields that can show up in query strings are masked.
"""
import logging
import json

from .config import config

MASKED_PARAMS = ('cpf', 'phone', 'email', 'pin')

logger = logging.getLogger('maodeobra')
logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

if not logger.handlers:
    stream = logging.StreamHandler()
    stream.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s [%(name)s] %(message)s'
    ))
    logger.addHandler(stream)
    logger.propagate = False


def _mask_query(params):
    if not params:
        return params
    return {k: ('***' if k.lower() in MASKED_PARAMS else v) for k, v in params.items()}


def log_event(event: dict, context=None) -> None:
    """Log the route, caller and parameters of an incoming event."""
    try:
        summary = {k: v for k, v in event.items() if k not in ('body', 'headers', 'multiValueHeaders')}
        if 'queryStringParameters' in summary:
            summary['queryStringParameters'] = _mask_query(summary['queryStringParameters'])
        if 'Records' in summary:
            # Stream images hold whole rows, only the volume is logged
            summary['Records'] = len(summary['Records'] or [])
        request_id = getattr(context, 'aws_request_id', None)
        prefix = f"[{request_id}] " if request_id else ''
        logger.info(f"{prefix}Event: {json.dumps(summary, default=str)}")
    except (TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Event could not be logged: {e}")
