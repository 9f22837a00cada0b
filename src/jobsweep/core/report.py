"""Plain-text rendering of scan results and failures."""

from typing import Any, List, Mapping, Optional

from .results import ProjectedMatch, ScanResult


def _dotted(*parts: Optional[str]) -> str:
    return ".".join(str(part) for part in parts if part)


def format_connector(direction: str, config: Mapping[str, Mapping[str, Any]]) -> Optional[str]:
    """One line describing the input or output side, if known"""
    label = "Input" if direction == "input" else "Output"

    s3 = config.get(f"{direction}_s3")
    if s3:
        return f"{label}: s3://{s3.get('bucket')}/{s3.get('prefix') or ''}"

    snowflake = config.get(f"{direction}_snowflake")
    if snowflake:
        path = _dotted(snowflake.get("database"), snowflake.get("schema"), snowflake.get("table"))
        return f"{label}: {path} (warehouse: {snowflake.get('warehouse')})"

    bigquery = config.get(f"{direction}_bigquery")
    if bigquery:
        path = _dotted(bigquery.get("project_id"), bigquery.get("dataset_id"), bigquery.get("table_id"))
        return f"{label}: {path}"

    return None


def format_config_details(config: Optional[Mapping[str, Mapping[str, Any]]]) -> List[str]:
    """Connector lines for an enriched match (empty when nothing is known)"""
    if not config:
        return []
    lines = [format_connector("input", config), format_connector("output", config)]
    return [line for line in lines if line]


def format_match(index: int, match: ProjectedMatch) -> str:
    lines = [
        f"{index}. {match.name} (ID: {match.id})",
        f"   {match.input_type} -> {match.output_type}",
    ]
    lines.extend(f"   {line}" for line in format_config_details(match.config))
    if match.url:
        lines.append(f"   URL: {match.url}")
    return "\n".join(lines)


def format_result_text(result: ScanResult) -> str:
    """Human-readable summary of a scan result"""
    if not result.matches:
        return (
            f'No job definitions found for "{result.search_term}"\n\n'
            f"Strategy: {result.strategy}\n"
            f"Progress: {result.progress}\n\n"
            "Try another strategy or a different search term."
        )

    enriched = result.enriched_matches
    header = (
        f'Batch search results: "{result.search_term}"\n\n'
        f"Strategy: {result.strategy}\n"
        f"Progress: {result.progress}\n"
        f"Matches: {len(result.matches)}\n\n"
    )
    body = "\n\n".join(format_match(i, match) for i, match in enumerate(enriched, 1))

    remaining = len(result.matches) - len(enriched)
    if remaining > 0:
        body += f"\n\n... {remaining} more"

    return header + body


def format_failure_text(formatted_error: str) -> str:
    return f"Batch search failed\n{formatted_error}"
