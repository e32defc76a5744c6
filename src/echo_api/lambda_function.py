"""
Echo API Lambda Function - example entry point built on ApiBuilder.

Routes are registered at import time; the Lambda handler only dispatches.
"""

import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Add the api_builder package to the Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from api_builder import ApiBuilder, ApiRequest, ApiResponse

logger = Logger(service="echo-service")
tracer = Tracer(service="echo-service")
metrics = Metrics(namespace="ApiBuilder/Echo", service="echo-service")

api = ApiBuilder()


@api.get('/echo')
def echo(request: ApiRequest, context: Any) -> Dict[str, Any]:
    """Return the query string parameters."""
    return request.query_string


@api.post('/echo', options={'success': 201})
async def echo_body(request: ApiRequest, context: Any) -> Any:
    """Return the parsed request body."""
    metrics.add_metric(name="EchoPostCount", unit=MetricUnit.Count, value=1)
    return request.body


@api.get('/version', options={'success': {'contentType': 'text/plain'}})
def version(request: ApiRequest, context: Any) -> str:
    return os.environ.get('APP_VERSION', 'v1.0.0')


@api.get('/time')
def server_time(request: ApiRequest, context: Any) -> ApiResponse:
    return ApiResponse(
        {'time': datetime.now(timezone.utc).isoformat()},
        {'Cache-Control': 'no-store'},
        200,
    )


@api.get('/docs', options={'success': 302})
def docs(request: ApiRequest, context: Any) -> str:
    """Redirect to the documentation site."""
    return 'https://docs.example.com/echo'


@metrics.log_metrics(capture_cold_start_metric=True)
@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Echo Lambda function handler.

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        API Gateway proxy response
    """
    return api.resolve(event, context)
