"""
Link storage service.

Stores opaque JSON documents under short random ids and serves them back,
routing reads and writes across an in-memory cache, a local disk tier and
an optional Postgres tier.
"""
