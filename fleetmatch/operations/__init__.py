"""Bulk operations package for fleetmatch.

This package provides the sequential bulk pipelines and the backend
protocols they call.

Example:
    >>> from fleetmatch.operations import BulkDeploymentPipeline
    >>> pipeline = BulkDeploymentPipeline(client)
    >>> summary = pipeline.deploy(items, config)
    >>> print(f"Created: {summary.success_count}, Failed: {summary.failure_count}")
"""

from .bulk_pipelines import (
    CANCELLED_ERROR,
    DEPLOY_THROTTLE_SECONDS,
    BulkDeploymentPipeline,
    BulkMutationPipeline,
)
from .ports import MutationBackend, PolicyBackend

__all__ = [
    "CANCELLED_ERROR",
    "DEPLOY_THROTTLE_SECONDS",
    "BulkDeploymentPipeline",
    "BulkMutationPipeline",
    "MutationBackend",
    "PolicyBackend",
]
