"""Provisioning engine: registry, orchestrator, verifier and reports."""

from hostprep.core.engine.orchestrator import Orchestrator
from hostprep.core.engine.registry import DuplicateIdError, RegistryError, StepRegistry
from hostprep.core.engine.reports import RunReport, VerificationReport
from hostprep.core.engine.verifier import Verifier

__all__ = [
    "DuplicateIdError",
    "Orchestrator",
    "RegistryError",
    "RunReport",
    "StepRegistry",
    "VerificationReport",
    "Verifier",
]
