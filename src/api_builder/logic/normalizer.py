"""
Request normalization.

Converts an API Gateway proxy event into an ApiRequest. The input event is
never modified: every map is copied before it lands on the request.
"""

import base64
import binascii
import json
import os
from collections.abc import Mapping
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl

from api_builder.exceptions import RequestNormalizationError
from api_builder.models.request import ApiRequest, RequestContext
from api_builder.utils.headers import lowercase_keys
from api_builder.utils.merge_vars import merge_vars
from api_builder.utils.serialization import canonical_content_type

FORM_CONTENT_TYPE = 'application/x-www-form-urlencoded'
JSON_CONTENT_TYPE = 'application/json'

TEXT_CONTENT_TYPES = frozenset([
    JSON_CONTENT_TYPE,
    'text/plain',
    'application/xml',
    'text/xml',
    FORM_CONTENT_TYPE,
])


def is_proxy_event(event: Any) -> bool:
    """Check whether an event carries API Gateway proxy routing information."""
    if not isinstance(event, Mapping):
        return False
    request_context = event.get('requestContext')
    return (
        isinstance(request_context, Mapping)
        and bool(request_context.get('resourcePath'))
        and bool(request_context.get('httpMethod'))
    )


def _copy_map(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def convert_context(request_context: Mapping) -> RequestContext:
    identity = request_context.get('identity') or {}
    authorizer = request_context.get('authorizer')
    return RequestContext(
        method=(request_context.get('httpMethod') or 'GET').upper(),
        path=request_context.get('resourcePath'),
        stage=request_context.get('stage'),
        source_ip=identity.get('sourceIp'),
        account_id=identity.get('accountId'),
        user=identity.get('user'),
        user_agent=identity.get('userAgent'),
        user_arn=identity.get('userArn'),
        caller=identity.get('caller'),
        api_key=identity.get('apiKey'),
        authorizer_principal_id=authorizer.get('principalId') if authorizer else None,
        authorizer=dict(authorizer) if authorizer else None,
        cognito_authentication_provider=identity.get('cognitoAuthenticationProvider'),
        cognito_authentication_type=identity.get('cognitoAuthenticationType'),
        cognito_identity_id=identity.get('cognitoIdentityId'),
        cognito_identity_pool_id=identity.get('cognitoIdentityPoolId'),
    )


def _decode_body(body: Any, content_type: str, is_base64_encoded: bool) -> Any:
    if not is_base64_encoded:
        return body
    try:
        decoded = base64.b64decode(body or '')
    except (binascii.Error, TypeError, ValueError) as exc:
        raise RequestNormalizationError('request body is not valid base64', original_error=exc) from exc
    if content_type in TEXT_CONTENT_TYPES:
        return decoded.decode('utf-8', errors='replace')
    return decoded


def _parse_json(body: Any) -> Any:
    if isinstance(body, (dict, list)):
        return body
    try:
        return json.loads(body or '{}')
    except (TypeError, ValueError) as exc:
        raise RequestNormalizationError(f'request body is not valid JSON: {exc}', original_error=exc) from exc


def _parse_form(body: Any) -> Dict[str, str]:
    if isinstance(body, (bytes, bytearray)):
        body = bytes(body).decode('utf-8', errors='replace')
    return dict(parse_qsl(body or '', keep_blank_values=True))


def _merged_env(stage_variables: Dict[str, Any], stage: Optional[str]) -> Dict[str, Any]:
    process_vars = dict(os.environ)
    env = merge_vars(process_vars, process_vars, f'{stage}_' if stage else None)
    env.update(stage_variables)
    return env


def convert_proxy_request(event: Mapping, lambda_context: Any = None, merge_env: bool = False) -> ApiRequest:
    """
    Convert an API Gateway proxy event into an ApiRequest.

    Args:
        event: API Gateway proxy integration event
        lambda_context: Lambda invocation context, stored on the request
        merge_env: overlay stage variables on stage-prefixed and global process variables

    Returns:
        Canonical request

    Raises:
        RequestNormalizationError: when the body cannot be decoded or parsed
    """
    headers = _copy_map(event.get('headers'))
    normalized_headers = lowercase_keys(headers)
    content_type = canonical_content_type(normalized_headers.get('content-type'))
    raw_body = event.get('body') or ''
    body = _decode_body(raw_body, content_type, bool(event.get('isBase64Encoded')))

    request_context = event.get('requestContext')
    context = convert_context(request_context) if isinstance(request_context, Mapping) else RequestContext()

    stage_variables = _copy_map(event.get('stageVariables'))
    env = _merged_env(stage_variables, context.stage) if merge_env else stage_variables

    post = _parse_form(body) if content_type == FORM_CONTENT_TYPE else None
    if content_type == JSON_CONTENT_TYPE:
        body = _parse_json(body)

    return ApiRequest(
        context=context,
        query_string=_copy_map(event.get('queryStringParameters')),
        path_params=_copy_map(event.get('pathParameters')),
        env=env,
        headers=headers,
        normalized_headers=normalized_headers,
        body=body,
        raw_body=raw_body,
        post=post,
        proxy_request=dict(event),
        lambda_context=lambda_context,
    )


def extend_proxy_request(event: Mapping, lambda_context: Any = None) -> ApiRequest:
    """
    Build an ApiRequest using the older request shape rules.

    Bodies are taken as received without base64 decoding, a missing body
    becomes '', and stage variables are used without merging.
    """
    headers = _copy_map(event.get('headers'))
    normalized_headers = lowercase_keys(headers)
    content_type = canonical_content_type(normalized_headers.get('content-type'))
    body = event.get('body') or ''

    post = _parse_form(body) if content_type == FORM_CONTENT_TYPE else None
    if content_type == JSON_CONTENT_TYPE:
        body = _parse_json(body)

    request_context = event.get('requestContext')
    return ApiRequest(
        context=convert_context(request_context) if isinstance(request_context, Mapping) else RequestContext(),
        query_string=_copy_map(event.get('queryStringParameters')),
        path_params=_copy_map(event.get('pathParameters')),
        env=_copy_map(event.get('stageVariables')),
        headers=headers,
        normalized_headers=normalized_headers,
        body=body,
        raw_body=event.get('body') or '',
        post=post,
        proxy_request=dict(event),
        lambda_context=lambda_context,
    )
