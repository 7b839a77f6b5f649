"""Service layer around the reconcile engine."""

from .amendment_service import AmendmentPreview, AmendmentService

__all__ = ['AmendmentPreview', 'AmendmentService']
