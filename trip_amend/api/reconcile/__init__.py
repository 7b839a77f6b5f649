"""Reconciliation engine: merge extracted amendments into a waypoint list."""

from .airport import is_airport_location
from .changes import compute_changes
from .matching import match_edit
from .normalizer import load_waypoints, normalize_locations
from .reconciler import ReconcilePhase, Reconciler, ReconcileStateError, reconcile
from .references import resolve_reference
from .removals import match_removals
from .times import normalize_time, should_update_time

__all__ = [
    'compute_changes',
    'is_airport_location',
    'load_waypoints',
    'match_edit',
    'match_removals',
    'normalize_locations',
    'normalize_time',
    'reconcile',
    'ReconcilePhase',
    'Reconciler',
    'ReconcileStateError',
    'resolve_reference',
    'should_update_time',
]
