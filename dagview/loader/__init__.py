"""
Loader module for dagview.

This module reads the initial graph records and the mutation log from JSON
documents and renders mutations back into plain data.
"""

from dagview.loader.reader import (
    load_mutation_log,
    load_records,
    multi_mutation_from_dict,
    multi_mutation_to_dict,
    mutation_from_dict,
    mutation_log_from_data,
    mutation_to_dict,
    records_from_dict,
)

__all__ = [
    "load_mutation_log",
    "load_records",
    "multi_mutation_from_dict",
    "multi_mutation_to_dict",
    "mutation_from_dict",
    "mutation_log_from_data",
    "mutation_to_dict",
    "records_from_dict",
]
