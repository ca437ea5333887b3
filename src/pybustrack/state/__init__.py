"""Liveness state layer.

This package is the single place where position observations are turned
into per-vehicle reporting status. Callers feed observations in; the
classifier owns the state records and the pending offline timers.
"""

from pybustrack.state.events import StatusChange
from pybustrack.state.liveness import LivenessClassifier

__all__ = ["LivenessClassifier", "StatusChange"]
