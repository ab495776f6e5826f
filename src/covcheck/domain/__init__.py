"""Domain layer: value objects, runtime state, ports and exceptions.

No dependencies on infrastructure or application layers.
"""
