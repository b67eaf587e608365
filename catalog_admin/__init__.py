"""Catalog administration API.

Backend for the product-catalog dashboard: category tree maintenance,
product CRUD with asset uploads, and CSV bulk import.
"""

__version__ = "0.1.0"
