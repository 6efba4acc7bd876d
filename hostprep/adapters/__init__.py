"""Actions — install and check implementations behind the engine.

Public re-exports for convenient access.
"""

from hostprep.adapters.base import Action, ActionContext, FunctionAction
from hostprep.adapters.catalog import ActionCatalog, default_catalog
from hostprep.adapters.mock import MockAction

__all__ = [
    "Action",
    "ActionCatalog",
    "ActionContext",
    "FunctionAction",
    "MockAction",
    "default_catalog",
]
