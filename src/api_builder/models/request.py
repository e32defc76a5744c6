"""
Canonical request models.

An ApiRequest is the gateway-agnostic representation of an inbound call that
route handlers, interceptors and CORS origin resolvers receive.
"""

from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class RequestContext(BaseModel):
    """Routing and caller identity information for a request."""

    model_config = ConfigDict(extra='allow')

    method: Annotated[str, Field(
        default='GET',
        description='Upper-cased HTTP method',
        examples=['GET', 'POST'],
    )] = 'GET'

    path: Annotated[Optional[str], Field(
        default=None,
        description='API Gateway resource path used for routing',
        examples=['/hello/{name}'],
    )] = None

    stage: Optional[str] = None
    source_ip: Optional[str] = None
    account_id: Optional[str] = None
    user: Optional[str] = None
    user_agent: Optional[str] = None
    user_arn: Optional[str] = None
    caller: Optional[str] = None
    api_key: Optional[str] = None
    authorizer_principal_id: Optional[str] = None
    authorizer: Optional[Dict[str, Any]] = None
    cognito_authentication_provider: Optional[str] = None
    cognito_authentication_type: Optional[str] = None
    cognito_identity_id: Optional[str] = None
    cognito_identity_pool_id: Optional[str] = None


class ApiRequest(BaseModel):
    """Canonical request passed to interceptors and route handlers."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra='allow')

    context: Annotated[RequestContext, Field(
        default_factory=RequestContext,
        description='Routing context and caller identity',
    )]

    query_string: Dict[str, Any] = Field(default_factory=dict)
    path_params: Dict[str, Any] = Field(default_factory=dict)
    env: Dict[str, Any] = Field(default_factory=dict)

    headers: Annotated[Dict[str, Any], Field(
        default_factory=dict,
        description='Request headers exactly as received',
    )]

    normalized_headers: Annotated[Dict[str, Any], Field(
        default_factory=dict,
        description='Copy of the request headers with lower-cased names',
    )]

    body: Annotated[Any, Field(
        default=None,
        description='Parsed body for JSON requests, decoded text or bytes otherwise',
    )] = None

    raw_body: Annotated[Any, Field(
        default='',
        description='Body as received from the gateway',
    )] = ''

    post: Annotated[Optional[Dict[str, Any]], Field(
        default=None,
        description='Form fields, present only for application/x-www-form-urlencoded requests',
    )] = None

    proxy_request: Optional[Dict[str, Any]] = None
    lambda_context: Any = None

    @property
    def method(self) -> str:
        return self.context.method

    @property
    def path(self) -> Optional[str]:
        return self.context.path
