"""
Exceptions raised by the dagview engine.

All errors derive from DagViewError so callers can catch the whole family.
Request-shape errors additionally derive from ValueError.
"""

from typing import Iterable, Optional

from dagview.models import Mutation


class DagViewError(Exception):
    """Base class for all dagview errors."""


class StructuralError(DagViewError):
    """
    The graph is not a DAG or one of its invariants is violated.

    Attributes:
        nodes: Names of the nodes involved (for example the cycle found)
    """

    def __init__(self, message: str, nodes: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.nodes = list(nodes)


class MutationError(DagViewError):
    """
    A single mutation could not be applied.

    Attributes:
        mutation: The mutation that failed
        version: Index of the log entry being replayed, if any
        position: Position of the mutation inside its batch, if any
    """

    def __init__(
        self,
        message: str,
        mutation: Optional[Mutation] = None,
        version: Optional[int] = None,
        position: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.mutation = mutation
        self.version = version
        self.position = position

    def __str__(self) -> str:
        where = []
        if self.version is not None:
            where.append(f"version {self.version}")
        if self.position is not None:
            where.append(f"mutation {self.position}")
        if not where:
            return self.message
        return f"{self.message} (at {', '.join(where)})"

    def located(self, version: Optional[int] = None, position: Optional[int] = None):
        """Return a copy of this error tagged with its log location."""
        located = type(self)(
            self.message,
            mutation=self.mutation,
            version=self.version if version is None else version,
            position=self.position if position is None else position,
        )
        return located


class DuplicateNodeError(MutationError):
    """ADD_NODE named a node that already exists (strict mode only)."""


class InvalidRequestError(DagViewError, ValueError):
    """A request was rejected before any state was touched."""


class InputFormatError(DagViewError, ValueError):
    """Serialized graph or mutation log input is malformed."""
