"""
Backend package for the Harvesters Hub API.

This package provides a FastAPI application with record-store and asset
storage abstractions so the service can run against a real database and
S3-compatible object storage, or fully in memory for development and tests.
"""
