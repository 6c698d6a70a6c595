"""Image Cache Implementation.

Provides the concrete implementation of the ImageCache interface:
a bounded LRU memory tier, a SQLite disk tier served by a single worker
thread, and the periodic sweep that expires stale disk entries.
Bounded Context: Cache Management
"""
