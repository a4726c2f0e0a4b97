"""
tutordesk: session replication and access-control core for a tutoring workspace.

Keeps every help session consistent across the owner partition and the
staff-wide mirror, streams live snapshots to subscribers, enforces role and
ownership rules, and sweeps inactive sessions on a schedule.
"""

__version__ = "0.1.0"
