"""
Centralized observability utilities for the API builder.

This module provides configured instances of AWS Lambda Powertools for logging,
tracing, and metrics collection shared by the dispatcher and the post-deploy runner.
"""

from aws_lambda_powertools.logging import Logger
from aws_lambda_powertools.metrics import MetricUnit, Metrics
from aws_lambda_powertools.tracing import Tracer

# Metrics namespace for routing KPIs
METRICS_NAMESPACE = 'ApiBuilder'

# JSON output format, service name can be set by environment variable "POWERTOOLS_SERVICE_NAME"
logger: Logger = Logger()

# Service name can be set by environment variable "POWERTOOLS_SERVICE_NAME"
# Disabled by setting POWERTOOLS_TRACE_DISABLED to "True"
tracer: Tracer = Tracer()

# Namespace and service name can be set by environment variables:
# - POWERTOOLS_METRICS_NAMESPACE
# - POWERTOOLS_SERVICE_NAME
metrics = Metrics(namespace=METRICS_NAMESPACE)


def count_error(name: str) -> None:
    """Record a single occurrence of a dispatch failure metric."""
    metrics.add_metric(name=name, unit=MetricUnit.Count, value=1)
