"""
sqlweave Component Pool.

Externally populated, read-only registry of pluggable components shared by
every named configuration.
"""

from .pool import ComponentEntry, ComponentPool, ComponentPoolBuilder

__all__ = [
    "ComponentEntry",
    "ComponentPool",
    "ComponentPoolBuilder",
]
