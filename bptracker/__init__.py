"""Blood pressure tracking core.

Holds the reading collection, its persistence, the per-day aggregation rules
and the reversible delete, independent of any user interface.
"""
