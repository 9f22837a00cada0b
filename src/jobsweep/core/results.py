"""Result types produced by a scan."""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

_API_SUFFIX = re.compile(r"/api/?$")


def build_web_url(base_url: str, job_id: Any) -> str:
    """
    Deep link to a job definition in the web UI.

    The API base URL with a trailing `/api` segment removed, plus
    `/job_definitions/{id}`.
    """
    web_base = _API_SUFFIX.sub("", base_url).rstrip("/")
    return f"{web_base}/job_definitions/{job_id}"


@dataclass
class ProjectedMatch:
    """Listing fields of a matching job definition plus its deep link"""
    id: Any
    name: Optional[str] = None
    description: Optional[str] = None
    input_type: Optional[str] = None
    output_type: Optional[str] = None
    created_by: Any = None
    url: str = ""
    # Connector summaries; None when the record was not enriched, empty
    # when enrichment was attempted and failed.
    config: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any], base_url: str) -> "ProjectedMatch":
        return cls(
            id=record.get("id"),
            name=record.get("name"),
            description=record.get("description"),
            input_type=record.get("input_option_type"),
            output_type=record.get("output_option_type"),
            created_by=record.get("created_by"),
            url=build_web_url(base_url, record.get("id")) if record.get("id") is not None else "",
        )

    @property
    def enriched(self) -> bool:
        return self.config is not None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "input_type": self.input_type,
            "output_type": self.output_type,
            "created_by": self.created_by,
            "url": self.url,
        }
        if self.config is not None:
            data["config"] = self.config
        return data


@dataclass(frozen=True)
class ScanResult:
    """Outcome of one batch search. Built once, never mutated."""
    strategy: str
    search_term: str
    batches_searched: int
    total_scanned: int
    max_batches: int
    matches: List[ProjectedMatch] = field(default_factory=list)
    failed_batches: int = 0

    @property
    def progress(self) -> str:
        return (
            f"{self.batches_searched}/{self.max_batches} batches, "
            f"{self.total_scanned} configs scanned"
        )

    @property
    def enriched_matches(self) -> List[ProjectedMatch]:
        return [match for match in self.matches if match.enriched]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "strategy": self.strategy,
            "batchesSearched": self.batches_searched,
            "totalScanned": self.total_scanned,
            "matches": [match.to_dict() for match in self.matches],
            "progress": self.progress,
        }
