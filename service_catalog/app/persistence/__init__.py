"""
Persistence package for the Catalog Service.

Stores are the source of truth for products. The PostgreSQL store is used
in deployments; the in-memory store backs local runs and tests.
"""
