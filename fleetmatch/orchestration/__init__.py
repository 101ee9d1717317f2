"""Orchestration package for fleetmatch workflows."""

from .deployment_orchestrator import DeploymentOrchestrator
from .run_logger import RunLogger

__all__ = ["DeploymentOrchestrator", "RunLogger"]
