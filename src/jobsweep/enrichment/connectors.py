"""
Connector Summaries - Reduce job detail records to their storage endpoints.

Detail records carry connector settings in several field layouts. Each
connector type has an ordered list of layout rules; the first rule whose
predicate accepts the option block wins and its extractor produces the
summary. Supporting a new connector or layout means adding a rule here.

Summary keys are `{direction}_{connector}`, e.g.:
    {"input_s3": {"bucket": "raw", "prefix": "events/", "region": "ap-northeast-1"},
     "output_snowflake": {"database": "DWH", "schema": "PUBLIC", "table": "EVENTS",
                          "warehouse": "LOAD_WH"}}
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

DIRECTIONS = ("input", "output")

OptionBlock = Mapping[str, Any]


@dataclass(frozen=True)
class LayoutRule:
    """One known field layout for a connector type"""
    name: str
    locate: Callable[[OptionBlock, str], Optional[OptionBlock]]


def nested_block(key_template: str) -> Callable[[OptionBlock, str], Optional[OptionBlock]]:
    """Layout where settings sit under e.g. `s3_input_option`"""
    def locate(option: OptionBlock, direction: str) -> Optional[OptionBlock]:
        block = option.get(key_template.format(direction=direction))
        return block if isinstance(block, Mapping) and block else None
    return locate


def flat_block(required_field: str) -> Callable[[OptionBlock, str], Optional[OptionBlock]]:
    """Layout where settings sit directly in the option block"""
    def locate(option: OptionBlock, direction: str) -> Optional[OptionBlock]:
        return option if option.get(required_field) else None
    return locate


def summarize_object_storage(block: OptionBlock) -> Dict[str, Any]:
    return {
        "bucket": block.get("bucket"),
        "prefix": block.get("path_prefix") or block.get("prefix") or block.get("key_prefix") or "",
        "region": block.get("region"),
    }


def summarize_warehouse(block: OptionBlock) -> Dict[str, Any]:
    return {
        "database": block.get("database"),
        "schema": block.get("schema"),
        "table": block.get("table"),
        "warehouse": block.get("warehouse"),
    }


def summarize_analytics_table(block: OptionBlock) -> Dict[str, Any]:
    return {
        "project_id": block.get("project_id"),
        "dataset_id": block.get("dataset_id"),
        "table_id": block.get("table_id"),
    }


@dataclass(frozen=True)
class ConnectorSpec:
    """Layouts to try, in order, and the summarizer for one connector type"""
    layouts: List[LayoutRule]
    summarize: Callable[[OptionBlock], Dict[str, Any]]


CONNECTORS: Dict[str, ConnectorSpec] = {
    "s3": ConnectorSpec(
        layouts=[
            LayoutRule("nested", nested_block("s3_{direction}_option")),
            LayoutRule("flat", flat_block("bucket")),
        ],
        summarize=summarize_object_storage,
    ),
    "snowflake": ConnectorSpec(
        layouts=[
            LayoutRule("nested", nested_block("snowflake_{direction}_option")),
        ],
        summarize=summarize_warehouse,
    ),
    "bigquery": ConnectorSpec(
        layouts=[
            LayoutRule("nested", nested_block("bigquery_{direction}_option")),
        ],
        summarize=summarize_analytics_table,
    ),
}


def summarize_connectors(details: Optional[Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """
    Build connector summaries for a job detail record.

    Unknown connector types, missing option blocks and unrecognized
    layouts are skipped silently.

    Args:
        details: Detail record from GET job_definitions/{id} (or None)

    Returns:
        Mapping of `{direction}_{connector}` to summary dicts
    """
    config: Dict[str, Dict[str, Any]] = {}
    if not isinstance(details, Mapping):
        return config

    for direction in DIRECTIONS:
        connector = details.get(f"{direction}_option_type")
        option = details.get(f"{direction}_option")
        spec = CONNECTORS.get(connector) if isinstance(connector, str) else None

        if spec is None or not isinstance(option, Mapping):
            continue

        for layout in spec.layouts:
            block = layout.locate(option, direction)
            if block is not None:
                config[f"{direction}_{connector}"] = spec.summarize(block)
                break

    return config
