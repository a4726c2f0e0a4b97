"""Boundary layer: database, change feed and blob storage adapters."""
