"""
Service layer for business logic.

This package contains the profile service, which connects the CSV
pipeline (parse, map, summarize, merge) to the profile store and the
raw-text fetchers.
"""
