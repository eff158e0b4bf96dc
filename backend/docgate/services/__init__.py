"""Business logic services."""

from .permission_service import AccessDecisionEngine, build_engine, list_accessible_documents
from .gate import AuthorizationGate, GateDecision, GateOutcome, Principal

__all__ = [
    "AccessDecisionEngine",
    "build_engine",
    "list_accessible_documents",
    "AuthorizationGate",
    "GateDecision",
    "GateOutcome",
    "Principal",
]
