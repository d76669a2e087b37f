"""Capture scheduling for HealthSync.

Modules:
    scheduler — Host scheduler contract, asyncio host, and the periodic sync adapter
"""
