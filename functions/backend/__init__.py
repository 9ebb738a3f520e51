"""
Backend package for the beverage review bridge.

This package provides a FastAPI application that routes UI intents to
Firebase Authentication and Cloud Firestore through small gateway objects,
with in-memory stand-ins for tests and local runs.
"""
