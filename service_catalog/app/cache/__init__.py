"""
Cache package for the Catalog Service.

Defines the ProductCache contract together with an in-process backend and
a Redis backend sharing one expiry policy (5 minute absolute lifetime,
1 minute sliding window). The backend is chosen once at startup.
"""
