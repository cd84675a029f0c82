# promptkit/core/templating/extraction.py
"""
Post-render extraction: splits the YAML front matter off the rendered text,
then splits the remaining body into named sections.

Sections are marked with delimiter lines at the start of a line, each
followed by a blank line:

    === SYSTEM ===

    You are a helpful assistant.

    === USER ===

    Hello!
"""
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import yaml
import structlog

from promptkit.exceptions import ExtractionError

log = structlog.get_logger(__name__)

FRONT_MATTER_REG = re.compile(
    r"\A\ufeff?---[ \t]*\r?\n(?:(.*?)\r?\n)?(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)",
    re.DOTALL,
)
SECTIONS_REG = re.compile(r"^=== (\w+) ===\n\n", re.MULTILINE | re.ASCII)


@dataclass
class FrontMatter:
    attributes: Dict[str, Any]
    body: str


@dataclass
class Section:
    content: str
    title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"content": self.content}
        if self.title is not None:
            data["title"] = self.title
        return data


@dataclass
class RenderResult:
    body: str
    meta: Dict[str, Any] = field(default_factory=dict)
    sections: List[Section] = field(default_factory=list)

    def section(self, title: str) -> Optional[Section]:
        # first section with the given title.
        return next((s for s in self.sections if s.title == title), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "body": self.body,
            "meta": self.meta,
            "sections": [s.to_dict() for s in self.sections],
        }


def split_front_matter(text: str) -> FrontMatter:
    """Parses a leading `---` delimited YAML block; text without one has no attributes."""
    match = FRONT_MATTER_REG.match(text)
    if not match:
        return FrontMatter(attributes={}, body=text)

    raw_yaml = match.group(1) or ""
    try:
        parsed = yaml.safe_load(raw_yaml)
    except yaml.YAMLError as e:
        raise ExtractionError(f"Invalid YAML in front matter: {e}") from e
    if parsed is None:
        parsed = {}
    if not isinstance(parsed, dict):
        raise ExtractionError(f"Front matter must be a YAML mapping, got {type(parsed).__name__}")
    return FrontMatter(attributes=parsed, body=text[match.end():])


def get_sections(text: str) -> List[Section]:
    text = text.strip()
    # re.split keeps the captured titles: [before, title, content, title, content, ...]
    parts = SECTIONS_REG.split(text)[1:]
    if not parts:
        return [Section(content=text)]
    return [
        Section(title=parts[i], content=parts[i + 1].strip())
        for i in range(0, len(parts), 2)
    ]


def extract(raw: str, header_parser: Callable[[str], FrontMatter] = split_front_matter) -> RenderResult:
    front_matter = header_parser(raw)
    body = front_matter.body.strip()
    sections = get_sections(body)
    log.debug("render_output_extracted", meta_keys=list(front_matter.attributes), sections=len(sections))
    return RenderResult(body=body, meta=dict(front_matter.attributes), sections=sections)
