"""
cred-spine - schema-driven data access for credentialing records.

Packages:
- credspine.core: errors, Result, cache, logging, settings, events
- credspine.store: tabular store protocol and backends
- credspine.engine: registry, codec, row index, mutators, entity graph, audit
- credspine.ops: request-facing operations returning OperationResult
- credspine.cli: the ``credspine`` command
"""

__version__ = "0.1.0"
