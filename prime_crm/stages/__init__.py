"""Stage catalog and transition engine."""

from prime_crm.stages.catalog import (
    STAGE_CATALOG,
    FieldSpec,
    StageCatalog,
    StageDefinition,
    lookup,
    ordered_stages,
)
from prime_crm.stages.transition import (
    CapturedField,
    StageSubmission,
    StageTransitionEngine,
    transition,
)

__all__ = [
    "CapturedField",
    "FieldSpec",
    "STAGE_CATALOG",
    "StageCatalog",
    "StageDefinition",
    "StageSubmission",
    "StageTransitionEngine",
    "lookup",
    "ordered_stages",
    "transition",
]
