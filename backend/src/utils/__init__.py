"""
Utility modules for the intake form engine.

This package contains shared helpers used across the application,
including datetime utilities, schema helpers and file storage.
"""
