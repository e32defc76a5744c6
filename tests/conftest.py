"""
Pytest configuration and shared fixtures for the API builder.

This module provides common test fixtures and configuration used across
unit and integration tests.
"""

import base64
import os
import pytest
from typing import Any, Callable, Dict
from unittest.mock import Mock

from aws_lambda_env_modeler import modeler_impl

from api_builder import ApiBuilder


# Test environment configuration
@pytest.fixture(scope="session", autouse=True)
def test_environment():
    """Set up test environment variables."""
    os.environ.update({
        "AWS_DEFAULT_REGION": "us-east-1",
        "AWS_ACCESS_KEY_ID": "test",
        "AWS_SECRET_ACCESS_KEY": "test",
        "POWERTOOLS_SERVICE_NAME": "test-api-builder",
        "POWERTOOLS_METRICS_NAMESPACE": "TestApiBuilder",
        "LOG_LEVEL": "DEBUG",
        "POWERTOOLS_TRACE_DISABLED": "true",  # Disable X-Ray in tests
    })


@pytest.fixture(autouse=True)
def clear_env_cache():
    """Environment models are cached per process; reset between tests."""
    parse_model_with_cache = getattr(modeler_impl, "__parse_model_with_cache")
    parse_model_with_cache.cache_clear()
    yield
    parse_model_with_cache.cache_clear()


@pytest.fixture
def api() -> ApiBuilder:
    """Create a fresh API builder without variable merging."""
    return ApiBuilder(merge_vars=False)


@pytest.fixture
def lambda_context():
    """Fixture providing a mock Lambda context."""
    context = Mock()
    context.aws_request_id = "test-lambda-context-id"
    context.function_name = "api-builder-function"
    context.function_version = "$LATEST"
    context.invoked_function_arn = (
        "arn:aws:lambda:us-east-1:123456789012:function:api-builder-function"
    )
    context.memory_limit_in_mb = 128
    context.get_remaining_time_in_millis.return_value = 30000
    return context


@pytest.fixture
def make_event() -> Callable[..., Dict[str, Any]]:
    """Factory for API Gateway proxy events."""

    def factory(method: str = "GET", path: str = "/echo", **overrides: Any) -> Dict[str, Any]:
        event: Dict[str, Any] = {
            "resource": path,
            "path": path,
            "httpMethod": method,
            "headers": {"Accept": "application/json", "User-Agent": "pytest/test-agent"},
            "queryStringParameters": None,
            "pathParameters": None,
            "stageVariables": None,
            "requestContext": {
                "requestId": "test-request-id-123",
                "accountId": "123456789012",
                "stage": "test",
                "resourcePath": path,
                "httpMethod": method,
                "identity": {
                    "sourceIp": "127.0.0.1",
                    "userAgent": "test-agent/1.0",
                },
            },
            "body": None,
            "isBase64Encoded": False,
        }
        event.update(overrides)
        return event

    return factory


@pytest.fixture
def form_event(make_event) -> Dict[str, Any]:
    """A base64 encoded form submission."""
    return make_event(
        method="POST",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        body=base64.b64encode(b"birthyear=1905&press=%20OK%20").decode("ascii"),
        isBase64Encoded=True,
    )


@pytest.fixture
def full_proxy_event() -> Dict[str, Any]:
    """A proxy event carrying every identity and authorizer field."""
    return {
        "resource": "/hello/{name}",
        "path": "/hello/mike",
        "httpMethod": "POST",
        "headers": {
            "Accept": "*/*",
            "Content-Type": "application/json",
            "X-Forwarded-For": "24.15.46.241",
        },
        "queryStringParameters": {"name": "mike", "height": "165"},
        "pathParameters": {"name": "mike"},
        "stageVariables": {"lambdaVersion": "latest"},
        "requestContext": {
            "accountId": "acc-id",
            "resourceId": "123",
            "stage": "latest",
            "requestId": "abc-xyz",
            "identity": {
                "cognitoIdentityPoolId": "cognito-pool-id",
                "accountId": "acc-id",
                "cognitoIdentityId": "cognito-identity-id",
                "caller": "request-caller",
                "apiKey": "api-key",
                "sourceIp": "24.15.46.241",
                "cognitoAuthenticationType": "cognito-auth-type",
                "cognitoAuthenticationProvider": "cognito-auth-provider",
                "userArn": "user-arn",
                "userAgent": "curl/7.43.0",
                "user": "request-user",
            },
            "authorizer": {"principalId": "abc"},
            "resourcePath": "/hello/{name}",
            "httpMethod": "POST",
            "apiId": "api-id",
        },
        "body": '{"a": "b"}',
        "isBase64Encoded": False,
    }
