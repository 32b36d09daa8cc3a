"""
Core layer - Domain types, ports, exceptions and the Result type.

Nothing in this package performs I/O.
"""
