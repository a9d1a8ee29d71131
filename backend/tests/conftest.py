"""
Shared test setup: puts backend/src on the path, gives boto3 a region and
builds API Gateway events.
"""
import json
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

os.environ.setdefault('AWS_REGION', 'us-east-1')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')
os.environ.setdefault('MEDIA_BUCKET', 'maodeobra-media-test')


@pytest.fixture
def api_event():
    """Factory for API Gateway proxy events with Cognito claims."""
    def _make(sub=None, body=None, path=None, query=None, groups='', email=None, method='POST', resource=''):
        claims = {'cognito:groups': groups}
        if sub:
            claims['sub'] = sub
        if email:
            claims['email'] = email
        return {
            'httpMethod': method,
            'resource': resource,
            'pathParameters': path or {},
            'queryStringParameters': query,
            'body': json.dumps(body or {}),
            'requestContext': {'authorizer': {'claims': claims}}
        }
    return _make