"""
Sheriff's Office - record management service

A role-based service for a roleplay sheriff's office that:
- Keeps case files, jail records, fines, city laws and weapon registries
- Assigns tasks between personnel and shares notes
- Records every change in an audit trail
- Exports, imports and persists its whole state as one JSON snapshot
"""

__version__ = "0.1.0"
