"""
SafeStart API

Multi-tenant vehicle inspection management: companies, users, vehicles,
checklist templates, inspections, issues, notifications and audit logs.
"""

__version__ = "1.0.0"
