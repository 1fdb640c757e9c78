"""Pharmacy product catalog service.

This package contains the record stores, the catalog reference data, the
table/form presentation logic and the FastAPI application that exposes them.
"""

__version__ = "0.1.0"
