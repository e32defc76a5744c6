"""
Per-route configuration models.

Route options are supplied as plain dictionaries at registration time (the
same shape is exposed through the API config snapshot) and validated here
into typed templates used by the response packager.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api_builder.utils.http_codes import valid_http_code


class ContentHandling(str, Enum):
    """API Gateway content handling strategies."""
    CONVERT_TO_BINARY = "CONVERT_TO_BINARY"
    CONVERT_TO_TEXT = "CONVERT_TO_TEXT"


class ResponseTemplate(BaseModel):
    """Static response defaults for the success or error outcome of a route."""

    model_config = ConfigDict(populate_by_name=True, extra='forbid')

    code: Annotated[Optional[int], Field(
        default=None,
        description='HTTP status code used when the handler does not provide one',
        examples=[201, 404],
    )] = None

    content_type: Annotated[Optional[str], Field(
        default=None,
        alias='contentType',
        description='Response content type shorthand',
        examples=['text/html'],
    )] = None

    headers: Annotated[Optional[Union[Dict[str, str], List[str]]], Field(
        default=None,
        description='Static header values, or a legacy list of header names',
    )] = None

    content_handling: Annotated[Optional[ContentHandling], Field(
        default=None,
        alias='contentHandling',
        description='API Gateway content handling for the response',
    )] = None

    @field_validator('code', mode='before')
    @classmethod
    def validate_code(cls, v):
        """Accept only HTTP codes in the 200-599 range."""
        if v is None:
            return v
        if not valid_http_code(v):
            raise ValueError(f'{v!r} is not a valid HTTP code')
        return int(v)

    @property
    def static_headers(self) -> Dict[str, str]:
        """Header values to merge into responses; legacy name lists carry none."""
        if isinstance(self.headers, dict):
            return self.headers
        return {}

    @classmethod
    def from_option(cls, option: Any) -> Optional['ResponseTemplate']:
        """Build a template from a bare status code or a template mapping."""
        if option is None:
            return None
        if isinstance(option, bool):
            raise ValueError(f'{option!r} is not a valid HTTP code')
        if isinstance(option, (int, str)):
            return cls(code=option)
        return cls.model_validate(option)


class RouteOptions(BaseModel):
    """Options passed when a route is registered."""

    model_config = ConfigDict(extra='allow', arbitrary_types_allowed=True)

    success: Optional[ResponseTemplate] = None
    error: Optional[ResponseTemplate] = None

    @field_validator('success', 'error', mode='before')
    @classmethod
    def parse_template(cls, v):
        """Expand a bare status number into a template."""
        return ResponseTemplate.from_option(v)

    def template(self, kind: str) -> Optional[ResponseTemplate]:
        return self.success if kind == 'success' else self.error
