"""Role-based authorization engine for a multi-tenant school management system."""

__version__ = "0.1.0"
