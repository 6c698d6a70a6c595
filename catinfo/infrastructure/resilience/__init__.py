"""API Resilience Implementations.

Contains services for handling API rate limits and retries with exponential
backoff for transient catalog failures.
Bounded Context: API Resilience
"""
