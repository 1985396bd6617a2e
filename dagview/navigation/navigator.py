"""
Version Navigator for dagview

Computes the graph as of a given version of the mutation log, starting from
the pristine original graph and the most recently requested graph.

Navigation Rules:
    - original and current must be distinct objects
    - a target below -1 is rejected, a target past the end is clamped
    - forward (or staying): replay log[current + 1 .. target] on a copy of
      current
    - backward: replay log[0 .. target] on a copy of original

Design Decisions:
    - Going back never applies inverse mutations: inverses lose edges and
      tokens of deleted nodes, replaying from the original cannot
    - Neither input graph is modified; a failed replay leaves both intact
    - Duplicate ADD_NODE is tolerated while replaying (configurable), so
      replay stays robust to skew between the log and the stored state
"""

import logging
from collections.abc import MutableSequence

from dagview.config import DEFAULT_CONFIG, EngineConfig
from dagview.errors import InvalidRequestError, MutationError
from dagview.graph.builder import DataGraph
from dagview.models import MultiMutation
from dagview.mutation.applicator import apply_multi_mutation

logger = logging.getLogger(__name__)


def clamp_version(target_version: int, log_length: int) -> int:
    """
    Clamp a requested version into ``[-1, log_length - 1]``.

    Raises:
        InvalidRequestError: If ``target_version`` is below -1
    """
    if target_version < -1:
        raise InvalidRequestError(
            f"Version must be >= -1, got {target_version}"
        )
    return min(target_version, log_length - 1)


def replay(
    data_graph: DataGraph,
    log: MutableSequence[MultiMutation],
    start: int,
    stop: int,
    config: EngineConfig = DEFAULT_CONFIG,
) -> DataGraph:
    """
    Apply ``log[start .. stop]`` (inclusive) to ``data_graph`` in place.

    Effective batches whose token lists were trimmed are written back into
    the log so later diffs only show real changes.

    Raises:
        MutationError: Naming the first log entry and mutation that failed
    """
    strict = not config.skip_duplicate_nodes
    for index in range(start, stop + 1):
        multi = log[index]
        try:
            effective = apply_multi_mutation(data_graph, multi, strict=strict)
        except MutationError as e:
            logger.debug("Replay failed at version %d: %s", index, e)
            raise e.located(version=index) from e
        if effective != multi:
            log[index] = effective
        data_graph.version_number = index
    return data_graph


def go_to(
    original: DataGraph,
    current: DataGraph,
    target_version: int,
    log: MutableSequence[MultiMutation],
    config: EngineConfig = DEFAULT_CONFIG,
) -> DataGraph:
    """
    Compute the graph at ``target_version``.

    Args:
        original: The graph before any log entry is applied
        current: The most recently requested graph (must not be ``original``)
        target_version: Number of the last log entry to apply, -1 for none
        log: The mutation log
        config: Engine policy for duplicate nodes

    Returns:
        A new DataGraph whose ``version_number`` is the clamped target

    Raises:
        InvalidRequestError: If original and current are the same object or
            the target is below -1
        MutationError: If a log entry cannot be applied
    """
    if original is current:
        raise InvalidRequestError(
            "The current graph and the original graph refer to the same object"
        )

    target = clamp_version(target_version, len(log))

    if current.version_number <= target:
        logger.debug(
            "Replaying forward from version %d to %d", current.version_number, target
        )
        working = current.copy()
        replay(working, log, current.version_number + 1, target, config)
    else:
        logger.debug("Rebuilding version %d from the original graph", target)
        working = original.copy()
        working.version_number = -1
        replay(working, log, 0, target, config)

    return working.with_version(target)
