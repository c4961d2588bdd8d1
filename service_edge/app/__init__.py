"""
Edge cache service package.

The service shields a slow source of truth behind a shared key-value store:
- Rate limiting: fixed-window counters per client identity
- Caching: cache-aside reads with TTLs, explicit invalidation on writes

Structure:
- app.main: FastAPI app, routes, and wiring.
- app.store: Key-value store port with Redis and in-memory adapters.
- app.caching: Cache-aside gateway, codecs, key namespacing.
- app.ratelimit: Fixed-window limiter and request middleware.
- app.catalog: Product catalog standing in for the database.
"""
