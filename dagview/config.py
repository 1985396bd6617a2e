"""
Configuration layer for dagview.

Configuration is explicit (passed, not global) and immutable. Every engine
entry point that has a policy choice takes an ``EngineConfig`` and defaults to
``DEFAULT_CONFIG``.
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class EngineConfig:
    """
    Policy switches for graph construction, navigation and extraction.

    Attributes:
        strict_dag: Run a full acyclicity check after building a graph.
            When False only the order-dependent two-node cycle check runs.
        skip_duplicate_nodes: Treat ADD_NODE of an existing node as a
            logged no-op while replaying the log instead of an error.
        shortest_path_depth: Use a breadth-first walk from the roots for
            depth-bounded views so every node gets its minimum depth.
            The default depth-first walk keeps the first depth found.
        default_depth: Depth used when a caller does not give one.
    """

    strict_dag: bool = True
    skip_duplicate_nodes: bool = True
    shortest_path_depth: bool = False
    default_depth: int = 3

    def __post_init__(self) -> None:
        if self.default_depth < 0:
            raise ValueError(f"default_depth must be >= 0, got {self.default_depth}")

    def with_overrides(self, **changes) -> "EngineConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


DEFAULT_CONFIG = EngineConfig()
