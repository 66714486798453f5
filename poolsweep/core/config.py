"""YAML configuration loader with validation."""
import fnmatch
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Any, Dict

import yaml

DEFAULT_PAGE_SIZE = 50


@dataclass
class Config:
    """poolsweep configuration."""
    regions: List[str] = field(default_factory=lambda: ["all"])
    sweepers: List[str] = field(default_factory=lambda: ["all"])
    exclude_patterns: List[str] = field(default_factory=list)
    page_size: int = DEFAULT_PAGE_SIZE
    dry_run: bool = True
    json_logs: bool = False
    verbosity: int = 0

    def should_include_region(self, region: str) -> bool:
        """Check if region should be processed."""
        if "all" in self.regions:
            return True
        return region in self.regions

    def should_include_sweeper(self, name: str) -> bool:
        """Check if a registered sweeper should run."""
        if "all" in self.sweepers:
            return True
        return name in self.sweepers

    def matches_exclude_pattern(self, name: str) -> bool:
        """Check if resource name matches any exclude pattern."""
        return any(fnmatch.fnmatch(name, p) for p in self.exclude_patterns)


def load_config(path: Optional[str] = None) -> Config:
    """Load config from YAML file or return defaults.

    Args:
        path: Path to YAML config file. If None, returns default config.

    Returns:
        Config instance

    Raises:
        FileNotFoundError: If specified path doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If a value has the wrong shape
    """
    if path is None:
        return Config()

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return _parse_config(data)


def _parse_config(data: Dict[str, Any]) -> Config:
    """Parse config dict into Config dataclass."""
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping")

    regions = data.get("regions", ["all"])
    if isinstance(regions, str):
        regions = [regions]

    page_size = data.get("page_size", DEFAULT_PAGE_SIZE)
    if not isinstance(page_size, int) or page_size < 1:
        raise ValueError(f"page_size must be a positive integer, got {page_size!r}")

    return Config(
        regions=regions,
        sweepers=data.get("sweepers", ["all"]),
        exclude_patterns=data.get("exclude_patterns", []),
        page_size=page_size,
        dry_run=data.get("dry_run", True),
        json_logs=data.get("json_logs", False),
        verbosity=data.get("verbosity", 0),
    )
