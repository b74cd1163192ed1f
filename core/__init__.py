"""Shared infrastructure for the Aarogya Mitra and Raga music APIs.

This package holds the pieces every app relies on: the unified API
exception handler, the database router for the shared platform DB, the
request logging middleware and the health endpoints.
"""
