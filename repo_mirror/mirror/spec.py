"""
Mirror Spec — One line of the repositories input, parsed.

Grammar:

    owner/name[@branch][->target]

The target defaults to the name segment of the source.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class MirrorSpec:
    """What to mirror, and where to."""

    source_repo: str  # owner/name
    branch: Optional[str]
    target_name: str

    def indicator(self, org: str) -> str:
        """Human-readable identity, e.g. ``octo/widget --dev--> org/widget``."""
        return f"{self.source_repo} --{self.branch or ''}--> {org}/{self.target_name}"


def parse_spec(line: str) -> MirrorSpec:
    """Parse a single ``SOURCE[@BRANCH][->TARGET]`` entry."""
    left, _, target = line.strip().partition("->")
    source, _, branch = left.partition("@")
    source = source.strip()
    target = target.strip()

    if not target:
        # Second segment of owner/name; a source without a slash is its own name.
        parts = source.split("/")
        target = parts[1] if len(parts) > 1 else source

    return MirrorSpec(
        source_repo=source,
        branch=branch.strip() or None,
        target_name=target,
    )


def parse_specs(text: str) -> List[MirrorSpec]:
    """Parse a newline-separated repositories input, skipping blank lines."""
    return [parse_spec(line) for line in _lines(text.splitlines())]


def _lines(raw: Iterable[str]) -> Iterable[str]:
    for line in raw:
        if line.strip():
            yield line
