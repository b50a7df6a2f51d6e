"""
FacilityFlow Engine

Facility-maintenance issue tracking with:
- Forward-only lifecycle (open -> in_progress -> closed)
- Role-based transition permissions
- Append-only activity ledger
- SLA deadline and work-timing derivation
"""

__version__ = "0.1.0"
