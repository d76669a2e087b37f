"""Persistence for HealthSync.

Modules:
    backend         — Key-value backends (JSON file, in-memory)
    record_store    — 30-day retained capture history
    interval_config — Persisted periodic-capture interval
"""
