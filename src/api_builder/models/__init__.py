"""Pydantic models for requests, responses, route options and configuration."""

from api_builder.models.request import ApiRequest, RequestContext
from api_builder.models.response import ApiResponse, ProxyResponse
from api_builder.models.route_config import ContentHandling, ResponseTemplate, RouteOptions

__all__ = [
    "ApiRequest",
    "RequestContext",
    "ApiResponse",
    "ProxyResponse",
    "ContentHandling",
    "ResponseTemplate",
    "RouteOptions",
]
