"""
Domain models for the provisioning engine.

All models are re-exported here for convenient access:

    from hostprep.core.models import Step, Receipt, RunOutcome, CheckResult
"""

from hostprep.core.models.config import (
    ActionSpec,
    Defaults,
    ProvisionConfig,
    StepSpec,
)
from hostprep.core.models.outcome import (
    CheckResult,
    ErrorKind,
    OutcomeStatus,
    RunOutcome,
)
from hostprep.core.models.receipt import Receipt
from hostprep.core.models.step import Step

__all__ = [
    # config.py
    "ActionSpec",
    # outcome.py
    "CheckResult",
    "Defaults",
    "ErrorKind",
    "OutcomeStatus",
    "ProvisionConfig",
    # receipt.py
    "Receipt",
    "RunOutcome",
    # step.py
    "Step",
    "StepSpec",
]
