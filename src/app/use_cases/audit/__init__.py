"""
Audit Use Cases

All audit-related business logic.
"""

from .get_audit_events_use_case import AuditEventItem, AuditEventsPage, GetAuditEventsUseCase

__all__ = [
    "GetAuditEventsUseCase",
    "AuditEventItem",
    "AuditEventsPage",
]
