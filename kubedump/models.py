"""
Data models for kube-dump.
"""
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Resource:
    """
    One API resource type as reported by `kubectl api-resources`.
    """
    name: str
    api_version: str
    namespaced: bool
    kind: str
    short_names: str = ""  # Empty when the listing has no SHORTNAMES column

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class CommandOutput:
    """Result of fetching one resource type."""
    resource_name: str
    command_log: str
    output_path: Optional[str] = None
    stderr: str = ""  # Non-empty means the fetch failed
    returncode: Optional[int] = None

    @property
    def ok(self) -> bool:
        return not self.stderr


@dataclass
class FetchSummary:
    """Outcome of a fan-out, one CommandOutput per resource in input order."""
    outputs: List[CommandOutput] = field(default_factory=list)

    @property
    def succeeded(self) -> List[CommandOutput]:
        return [o for o in self.outputs if o.ok]

    @property
    def failed(self) -> List[CommandOutput]:
        return [o for o in self.outputs if not o.ok]

    def to_dict(self) -> Dict:
        return {
            'total': len(self.outputs),
            'succeeded': len(self.succeeded),
            'failed': [o.resource_name for o in self.failed],
        }
