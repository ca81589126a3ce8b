"""
ProjectPro

Multi-tenant construction project management API: projects, tasks,
vendors, documents, calendars, messaging and billing, with tenant
isolation enforced both in the application and by database row-level
security policies.
"""

__version__ = "1.0.0"
