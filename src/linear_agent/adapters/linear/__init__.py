"""
Linear adapter - IssueTrackerPort implementation for Linear.
"""

from .adapter import LinearAdapter
from .client import LinearGraphQLClient


__all__ = ["LinearAdapter", "LinearGraphQLClient"]
