"""Design package orchestration."""

from .lib import (
    DeadlineExceeded,
    Orchestrator,
    SpecFailurePolicy,
    generate_design_package,
)

__all__ = [
    "DeadlineExceeded",
    "Orchestrator",
    "SpecFailurePolicy",
    "generate_design_package",
]
