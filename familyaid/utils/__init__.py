"""Shared utilities for the FamilyAid client."""

from familyaid.utils.audit import AuditEvent, log_audit_event

__all__ = ["AuditEvent", "log_audit_event"]
