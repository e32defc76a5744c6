"""
Environment variable models for type-safe configuration.

This module defines the Pydantic model for the environment variables read by
the API builder, using aws-lambda-env-modeler for parsing and caching.
"""

from typing import Annotated

from aws_lambda_env_modeler import BaseModel as BaseEnvModel, get_environment_variables
from pydantic import Field


class RouterEnvVars(BaseEnvModel):
    """Environment variables for the API builder."""

    # Service name for observability
    POWERTOOLS_SERVICE_NAME: Annotated[str, Field(
        default='api-builder',
        description='Service name for AWS Powertools'
    )] = 'api-builder'

    # Log level for AWS Powertools Logger
    LOG_LEVEL: Annotated[str, Field(
        default='INFO',
        description='Log level for application logging',
        pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$'
    )] = 'INFO'

    # Merge process variables into request.env
    API_MERGE_VARS: Annotated[str, Field(
        default='false',
        description='Merge process and stage-prefixed variables into request env (true/false)',
        pattern=r'^(true|false)$'
    )] = 'false'

    @property
    def merge_vars_enabled(self) -> bool:
        """Check if variable merging is enabled."""
        return self.API_MERGE_VARS.lower() == 'true'


def get_router_env_vars() -> RouterEnvVars:
    """
    Get typed environment variables for the API builder.

    Returns:
        Validated environment variables model instance
    """
    return get_environment_variables(model=RouterEnvVars)
