"""
Adapters - Concrete implementations of the core ports.

- linear: IssueTrackerPort over the Linear GraphQL API
- llm: LLMPort over the Anthropic Messages API
- config: File and environment configuration providers
- cache: Workspace snapshot cache
- async_base: Retry executor and backoff helpers
"""
