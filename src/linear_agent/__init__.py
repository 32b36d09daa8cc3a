"""
linear-agent - Turn natural language into Linear issues.

Text goes through an LLM extraction step, is resolved against a cached
snapshot of the Linear workspace, validated, and written through the
Linear GraphQL API.
"""

__version__ = "0.1.0"
