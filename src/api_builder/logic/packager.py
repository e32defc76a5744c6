"""
Response packaging.

Turns a handler outcome into an API Gateway proxy response. Content type,
status code, headers and redirect location each follow the same precedence:
a dynamic ApiResponse beats the static route template, which beats the
built-in default.
"""

from typing import Any, Dict, Mapping, Optional

from api_builder.models.response import ApiResponse, ProxyResponse
from api_builder.models.route_config import ContentHandling, ResponseTemplate
from api_builder.utils.headers import HeaderMap, merge_headers
from api_builder.utils.http_codes import is_redirect
from api_builder.utils.observability import logger
from api_builder.utils.serialization import (
    JSON_CONTENT_TYPE,
    canonical_content_type,
    is_empty,
    safe_stringify,
    to_json,
)

SUCCESS = 'success'
ERROR = 'error'

DEFAULT_STATUS_CODES = {SUCCESS: 200, ERROR: 500}


def _dynamic_headers(result: Any) -> HeaderMap:
    if isinstance(result, ApiResponse):
        return HeaderMap(result.headers)
    return HeaderMap()


def _static_headers(template: Optional[ResponseTemplate]) -> Dict[str, str]:
    return template.static_headers if template else {}


def resolve_content_type(template: Optional[ResponseTemplate], result: Any) -> str:
    dynamic = _dynamic_headers(result).get('content-type')
    static = HeaderMap(_static_headers(template)).get('content-type')
    shorthand = template.content_type if template else None
    return dynamic or static or shorthand or JSON_CONTENT_TYPE


def resolve_status_code(template: Optional[ResponseTemplate], result: Any, kind: str) -> int:
    if isinstance(result, ApiResponse) and result.code:
        return int(result.code)
    if template and template.code:
        return template.code
    return DEFAULT_STATUS_CODES[kind]


def resolve_redirect_location(template: Optional[ResponseTemplate], result: Any) -> Optional[str]:
    dynamic_header = _dynamic_headers(result).get('location')
    contents = result.body if isinstance(result, ApiResponse) else result
    dynamic_body = safe_stringify(contents) if not isinstance(contents, BaseException) else None
    static_header = HeaderMap(_static_headers(template)).get('location')
    return dynamic_header or dynamic_body or static_header


def error_message(error: Any) -> str:
    """Extract the text reported for a failed call."""
    if isinstance(error, ApiResponse):
        return safe_stringify(error.body)
    if isinstance(error, BaseException):
        return str(error)
    if not is_empty(error):
        return safe_stringify(error)
    return ''


def serialize_body(content_type: str, result: Any, kind: str) -> str:
    """
    Serialize a body for the resolved content type.

    Raises:
        CircularReferenceError: for self-referential JSON success bodies
    """
    contents = result.body if isinstance(result, ApiResponse) else result
    if canonical_content_type(content_type) == JSON_CONTENT_TYPE:
        if kind == ERROR:
            return to_json({'errorMessage': error_message(result)})
        if contents is None or contents == '':
            return '{}'
        return to_json(contents)
    if kind == ERROR:
        return error_message(result)
    return safe_stringify(contents)


def log_error(error: Any) -> None:
    """Log a failed outcome: traceback if there is one, otherwise a safe string."""
    if isinstance(error, ApiResponse):
        logger.error(
            "Handler responded with an error envelope",
            extra={"error": safe_stringify({"body": error.body, "headers": dict(error.headers), "code": error.code})},
        )
    elif isinstance(error, BaseException):
        logger.error("Handler failed", exc_info=error, extra={"error": str(error)})
    else:
        logger.error("Handler failed", extra={"error": safe_stringify(error) or repr(error)})


def package_response(
    result: Any,
    template: Optional[ResponseTemplate],
    cors_headers: Optional[Mapping[str, str]],
    kind: str,
) -> Dict[str, Any]:
    """
    Build the proxy response for a handler outcome.

    Args:
        result: handler value for a success, raised error for a failure
        template: static template of the matched route for this outcome kind
        cors_headers: headers computed by the CORS policy
        kind: 'success' or 'error'

    Returns:
        API Gateway proxy response dictionary
    """
    content_type = resolve_content_type(template, result)
    status_code = resolve_status_code(template, result, kind)
    headers = merge_headers(
        {'Content-Type': content_type},
        cors_headers,
        _static_headers(template),
        result.headers if isinstance(result, ApiResponse) else None,
    )
    if is_redirect(status_code):
        location = resolve_redirect_location(template, result)
        if location:
            headers = merge_headers(headers, {'Location': location})

    response = ProxyResponse(
        status_code=status_code,
        headers=headers,
        body=serialize_body(content_type, result, kind),
    )
    if kind == SUCCESS and template and template.content_handling == ContentHandling.CONVERT_TO_BINARY:
        response.is_base64_encoded = True
    return response.to_dict()
