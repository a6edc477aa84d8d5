"""Deterministic stand-in for the generation backend, used in test mode."""

from __future__ import annotations

import json
import re
from typing import List, Sequence

MOCK_AREAS: tuple[str, ...] = (
    "Configuration Management",
    "Storage Layer",
    "Utilities",
)

_AREA_PATTERN = re.compile(r"^Area:\s*(.+)$", re.MULTILINE)
_PAGE_AREA_PATTERN = re.compile(r'documentation page for the area "([^"]+)"', re.IGNORECASE)
_FILE_LIST_MARKER = "All files:"


class MockRunner:
    """Returns canned markdown or JSON depending on which template produced the prompt."""

    def __init__(self, areas: Sequence[str] = MOCK_AREAS) -> None:
        self.areas = list(areas)
        self.prompts: List[str] = []

    def run(self, prompt: str, *, system: str | None = None) -> str:
        self.prompts.append(prompt)
        # Only the opening line is inspected; the rest may quote arbitrary repository files.
        opening = prompt.strip().split("\n", 1)[0]
        first_line = opening.lower()

        if "list the architectural areas" in first_line:
            return json.dumps(self.areas)

        if "identify relevant files" in first_line:
            match = _AREA_PATTERN.search(prompt)
            area = match.group(1).strip() if match else ""
            return json.dumps(self._files_for_area(area, prompt))

        area_match = _PAGE_AREA_PATTERN.search(opening)
        if area_match is None:
            if "home page" in first_line:
                return _HOME_PAGE
            if "architectural overview" in first_line:
                return _ARCHITECTURE_PAGE

        area = area_match.group(1) if area_match else "Area"
        return (
            f"# {area}\n\n"
            f"The {area} area groups the modules responsible for this part of the system.\n\n"
            "## Key Files\n\n"
            "- See the repository structure for the files involved.\n"
        )

    @staticmethod
    def _files_for_area(area: str, prompt: str) -> List[str]:
        _, _, listing = prompt.partition(_FILE_LIST_MARKER)
        files = [line.strip() for line in listing.splitlines() if line.strip()]
        keywords = [word for word in re.findall(r"[a-z]+", area.lower()) if len(word) > 3]
        matched = [path for path in files if any(word[:4] in path.lower() for word in keywords)]
        return (matched or files)[:5]


_HOME_PAGE = """# Home

## About This Project

This repository is organised into clearly separated modules with tests alongside.

## Getting Started

1. Clone the repository
2. Install dependencies
3. Explore the [[Architecture]] page
"""

_ARCHITECTURE_PAGE = """# Architecture

## Overview

The application follows a modular architecture with clear separation between layers.

## Components

1. **Configuration Management** - loads settings and environment
2. **Storage Layer** - persists and retrieves data
3. **Utilities** - shared helpers

```mermaid
flowchart LR
    Config[Configuration Management] --> Storage[Storage Layer]
    Utilities --> Storage
```
"""


__all__ = ["MOCK_AREAS", "MockRunner"]
