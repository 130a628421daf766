"""Audit logging package."""

from myexpenses.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
