"""
Compilation of design documents into execution plans.
"""

from .compiler import CompileResult, Compiler
from .context import RuntimeContext
from .plan import PLAN_SCHEMA, ExecutionPlan, Route

__all__ = [
    "PLAN_SCHEMA",
    "CompileResult",
    "Compiler",
    "ExecutionPlan",
    "Route",
    "RuntimeContext",
]
