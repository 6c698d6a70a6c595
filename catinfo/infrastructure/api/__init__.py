"""Catalog API Implementations.

Contains the HTTP client implementing the `CatalogApi` interface from the
domain layer.
"""
