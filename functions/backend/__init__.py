"""
Backend plumbing shared by the Cloud Functions entry points.

This package holds settings, the credit store abstraction (Firestore in
production, in-memory for local runs and tests) and the process-wide client
wiring used by main.py.
"""
