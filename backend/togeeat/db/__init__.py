"""Persistence primitives — declarative Base and a standalone session factory.

The API process gets its sessions from infrastructure/database.py; this package
only serves models, migrations and the sweep job.
"""
