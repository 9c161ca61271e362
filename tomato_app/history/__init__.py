"""
Session history module.

Builds a record for every completed work phase, keeps a bounded
append-only log of them, and derives daily/weekly/category totals.
"""
