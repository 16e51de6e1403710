"""
Validation pipeline for compiled routes.

Validation never raises for a malformed spec: it returns Issue values and
leaves the decision of what blocks a commit to the caller.
"""

from .adapter_step import AdapterStep
from .behavior import BehaviorStep
from .issues import Issue, Severity, blocking_issues, has_errors
from .pipeline import Pipeline, SpecStep, Step, ValidationContext
from .size import SizeStep
from .template_step import TemplateStep
from .topology import TopologyStep

__all__ = [
    "AdapterStep",
    "BehaviorStep",
    "Issue",
    "Pipeline",
    "Severity",
    "SizeStep",
    "SpecStep",
    "Step",
    "TemplateStep",
    "TopologyStep",
    "ValidationContext",
    "blocking_issues",
    "has_errors",
]
