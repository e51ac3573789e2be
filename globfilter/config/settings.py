from dataclasses import dataclass, field, fields, MISSING
from pathlib import Path
from typing import Any, Dict, List, Optional
import structlog

from globfilter.exceptions import ConfigError

log = structlog.get_logger(__name__)


def read_pattern_file(pattern_file: Path) -> List[str]:
    # one pattern per line; blank lines and "#" comments are skipped.
    try:
        lines = pattern_file.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise ConfigError(f"cannot read pattern file '{pattern_file}': {e}")
    patterns = [line.strip() for line in lines if line.strip() and not line.strip().startswith("#")]
    log.debug("pattern_file_loaded", path=str(pattern_file), count=len(patterns))
    return patterns


@dataclass
class FilterConfig:
    # holds all configuration parameters for a single run.
    root: Path = field(default_factory=lambda: Path("."))
    input_paths: List[str] = field(default_factory=list)
    include_patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)
    include_from_files: List[Path] = field(default_factory=list)
    exclude_from_files: List[Path] = field(default_factory=list)
    respect_gitignore: bool = False
    read_from_stdin: bool = False
    nul_separated: bool = False
    output_file: Optional[Path] = None
    strict: bool = False

    def effective_includes(self) -> List[str]:
        patterns = list(self.include_patterns)
        for pattern_file in self.include_from_files:
            patterns.extend(read_pattern_file(pattern_file))
        return patterns

    def effective_excludes(self) -> List[str]:
        patterns = list(self.exclude_patterns)
        for pattern_file in self.exclude_from_files:
            patterns.extend(read_pattern_file(pattern_file))
        return patterns


def config_defaults() -> Dict[str, Any]:
    # attribute -> default value of a fresh FilterConfig, keyed by field name.
    return {
        f.name: f.default_factory() if f.default_factory is not MISSING else f.default
        for f in fields(FilterConfig)
    }
