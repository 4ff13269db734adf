"""Test suite for formrecords.

This package contains tests for:
- Data model serialization (forms, field definitions, submissions)
- Structural input checks and the submission validator
- Storage backends (in-memory and SQLite)
- Schema registry, submission materializer, and query service
- Audit events
- The runtime facade and configuration
"""
