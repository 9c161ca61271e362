"""
Utility functions module.

Common helpers for time handling shared across the timer core.

Time Semantics:
- A running phase is described by an absolute deadline in epoch milliseconds
- Remaining seconds are always derived from the deadline, never decremented
- Session records use the local calendar day and clock time
"""
