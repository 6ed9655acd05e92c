"""Service layer package for application domain logic.

This package contains the rules that sit between the HTTP routers and the
`db_*` helpers: batch window status, score totals, file uploads and
application submission checks.
"""
