"""
Input Reader for dagview

Reads the initial graph and the mutation log from JSON documents. Both are
consumed whole into memory before any navigation begins.

Formats:
    Initial graph:
        {"nodes": {"A": {"children": ["B"], "tokens": ["a.py"], "metadata": {}}}}
        A bare name -> record mapping is accepted as well.

    Mutation log:
        {"mutations": [{"reason": "add B", "mutation": [
            {"type": "ADD_EDGE", "start_node": "A", "end_node": "B"},
            {"type": "CHANGE_TOKEN", "start_node": "A",
             "token_change": {"type": "ADD_TOKEN", "tokens": ["b.py"]}}]}]}
        A bare list of batches is accepted as well.

Malformed documents raise InputFormatError naming the offending entry.
"""

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Union

from dagview.errors import InputFormatError
from dagview.models import (
    MultiMutation,
    Mutation,
    MutationList,
    MutationType,
    NodeRecord,
    TokenMutation,
    TokenMutationType,
)


def _read_json(path: Union[Path, str]) -> Any:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InputFormatError(f"{path} is not valid JSON: {e}") from e


def _string_list(value: Any, what: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InputFormatError(f"{what} must be a list of strings")
    return list(value)


def records_from_dict(data: Mapping[str, Any]) -> dict[str, NodeRecord]:
    """
    Convert a parsed initial-graph document into node records.

    Args:
        data: Either ``{"nodes": {...}}`` or a bare name -> record mapping

    Returns:
        Mapping from node name to NodeRecord, in document order
    """
    if not isinstance(data, Mapping):
        raise InputFormatError("Initial graph must be a JSON object")

    nodes = data.get("nodes", data)
    if not isinstance(nodes, Mapping):
        raise InputFormatError("'nodes' must be an object mapping names to records")

    records: dict[str, NodeRecord] = {}
    for name, raw in nodes.items():
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            raise InputFormatError(f"Record for node '{name}' must be an object")
        metadata = raw.get("metadata")
        if metadata is None:
            metadata = {}
        if not isinstance(metadata, Mapping):
            raise InputFormatError(f"Metadata of node '{name}' must be an object")
        records[name] = NodeRecord(
            name=name,
            children=_string_list(raw.get("children"), f"Children of node '{name}'"),
            tokens=_string_list(raw.get("tokens"), f"Tokens of node '{name}'"),
            metadata=dict(metadata),
        )
    return records


def _enum_value(enum_cls, value: Any, what: str):
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        raise InputFormatError(f"Unknown {what} {value!r} (expected one of: {valid})") from None


def mutation_from_dict(data: Mapping[str, Any]) -> Mutation:
    """Convert a parsed mutation entry into a Mutation."""
    if not isinstance(data, Mapping):
        raise InputFormatError("Mutation must be a JSON object")

    mutation_type = _enum_value(MutationType, data.get("type"), "mutation type")

    start = data.get("start_node", data.get("startNode"))
    if not isinstance(start, str) or not start:
        raise InputFormatError(f"{mutation_type.value} mutation needs a start_node")

    end = data.get("end_node", data.get("endNode", "")) or ""
    if mutation_type in (MutationType.ADD_EDGE, MutationType.DELETE_EDGE) and not end:
        raise InputFormatError(
            f"{mutation_type.value} mutation from '{start}' needs an end_node"
        )

    token_change = None
    if mutation_type == MutationType.CHANGE_TOKEN:
        raw_change = data.get("token_change", data.get("tokenChange"))
        if not isinstance(raw_change, Mapping):
            raise InputFormatError(f"CHANGE_TOKEN mutation of '{start}' needs a token_change")
        token_change = TokenMutation(
            type=_enum_value(TokenMutationType, raw_change.get("type"), "token mutation type"),
            tokens=tuple(
                _string_list(
                    raw_change.get("tokens", raw_change.get("tokenName")),
                    f"Tokens of the change on '{start}'",
                )
            ),
        )

    return Mutation(
        type=mutation_type,
        start_node=start,
        end_node=end,
        token_change=token_change,
    )


def multi_mutation_from_dict(data: Mapping[str, Any]) -> MultiMutation:
    """Convert a parsed log entry into a MultiMutation."""
    if not isinstance(data, Mapping):
        raise InputFormatError("Log entry must be a JSON object")

    raw_mutations = data.get("mutation", data.get("mutations"))
    if not isinstance(raw_mutations, list) or not raw_mutations:
        raise InputFormatError("Log entry must hold a non-empty 'mutation' list")

    reason = data.get("reason", "")
    if not isinstance(reason, str):
        raise InputFormatError("Log entry reason must be a string")

    return MultiMutation(
        mutations=tuple(mutation_from_dict(m) for m in raw_mutations),
        reason=reason,
    )


def mutation_log_from_data(data: Any) -> MutationList:
    """Convert a parsed log document into a mutation list."""
    if isinstance(data, Mapping):
        data = data.get("mutations", data.get("mutation"))
    if not isinstance(data, list):
        raise InputFormatError("Mutation log must be a list of entries")

    log: MutationList = []
    for index, entry in enumerate(data):
        try:
            log.append(multi_mutation_from_dict(entry))
        except InputFormatError as e:
            raise InputFormatError(f"Log entry {index}: {e}") from e
    return log


def load_records(path: Union[Path, str]) -> dict[str, NodeRecord]:
    """Read the initial graph records from a JSON file."""
    return records_from_dict(_read_json(path))


def load_mutation_log(path: Union[Path, str]) -> MutationList:
    """Read the mutation log from a JSON file."""
    return mutation_log_from_data(_read_json(path))


def mutation_to_dict(mutation: Mutation) -> dict[str, Any]:
    """Plain JSON-safe rendering of a mutation."""
    data: dict[str, Any] = {
        "type": mutation.type.value,
        "start_node": mutation.start_node,
    }
    if mutation.end_node:
        data["end_node"] = mutation.end_node
    if mutation.token_change is not None:
        data["token_change"] = {
            "type": mutation.token_change.type.value,
            "tokens": list(mutation.token_change.tokens),
        }
    return data


def multi_mutation_to_dict(multi: MultiMutation) -> dict[str, Any]:
    """Plain JSON-safe rendering of a log entry."""
    return {
        "reason": multi.reason,
        "mutation": [mutation_to_dict(m) for m in multi.mutations],
    }
