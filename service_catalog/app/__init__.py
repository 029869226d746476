"""
Catalog Service package.

Exposes CRUD operations over products through a versioned HTTP API. It
provides:

- app.main: API surface (v1, v2 and unversioned routes) and health.
- app.products: Product entity, request/response models and the
  ProductService that owns the cache-aside protocol.
- app.cache: ProductCache contract with in-memory and Redis backends.
- app.persistence: Product stores (PostgreSQL and in-memory).

Guidelines:
- Only ProductService touches both the cache and the store.
- The store is the source of truth; the cache may lag within its TTL.
"""
