"""
Lambda API Builder.

Routes API Gateway proxy events to registered handlers and packages their
results as proxy integration responses, with CORS handling, a request
interceptor hook and sequential post-deploy steps.
"""

__version__ = "1.0.0"

from api_builder.builder import ApiBuilder
from api_builder.exceptions import (
    ApiBuilderError,
    CircularReferenceError,
    ConfigurationError,
    PromptError,
    RequestNormalizationError,
    ResponseFormattingError,
    RoutingError,
)
from api_builder.models.request import ApiRequest, RequestContext
from api_builder.models.response import ApiResponse

__all__ = [
    "__version__",
    "ApiBuilder",
    "ApiRequest",
    "ApiResponse",
    "RequestContext",
    "ApiBuilderError",
    "CircularReferenceError",
    "ConfigurationError",
    "PromptError",
    "RequestNormalizationError",
    "ResponseFormattingError",
    "RoutingError",
]
