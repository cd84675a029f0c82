# promptkit/core/templating/cache.py
"""
In-memory cache of compiled templates.

A TemplateCache belongs to one TemplateRenderer and lives as long as it does.
Entries are keyed by template identifier and template directory, built on
first use and never evicted or refreshed: a template file edited on disk is
not picked up by a renderer that already compiled it.
"""
import re
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union
import pybars  # type: ignore
import structlog

from promptkit.exceptions import CompilationError
from .source import resolve_template_source

log = structlog.get_logger(__name__)

# pybars keeps its code builder as class-level state, so no two compiles may
# overlap, whichever Compiler instance runs them.
_COMPILE_LOCK = threading.Lock()

CacheKey = Tuple[str, Optional[str]]

# one mustache tag starting at a `{{`: comments (which may contain `}}`), triple-stash, or plain.
TAG_REG = re.compile(r"\{\{(!--.*?--|!.*?|\{.*?\}|.*?)\}\}", re.DOTALL)
BLOCK_NAME_REG = re.compile(r"[^\s}]+")


def describe_identifier(identifier: str, limit: int = 40) -> str:
    # short, single-line label for logs and error messages.
    text = identifier.replace("\n", " ").strip()
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _line_of(source: str, index: int) -> int:
    return source.count("\n", 0, index) + 1


def check_template_syntax(source: str) -> None:
    """
    Raises ValueError for unterminated tags and unbalanced block tags.

    pybars stops parsing at the first construct it cannot match and compiles
    whatever came before it, so these would otherwise render silently as
    truncated output.
    """
    open_blocks = []  # (name, line)
    position = source.find("{{")
    while position != -1:
        if position > 0 and source[position - 1] == "\\":
            # escaped mustache, emitted literally.
            position = source.find("{{", position + 2)
            continue
        match = TAG_REG.match(source, position)
        line = _line_of(source, position)
        if match is None or (not match.group(1).startswith(("!", "{")) and "{{" in match.group(1)):
            raise ValueError(f"unterminated tag at line {line}")

        content = match.group(1).strip("~").strip()
        if content[:1] in ("#", "^") and len(content) > 1:
            name = BLOCK_NAME_REG.match(content[1:].lstrip())
            open_blocks.append((name.group(0) if name else "", line))
        elif content.startswith("/"):
            name = content[1:].strip()
            if not open_blocks:
                raise ValueError(f"closing tag {{{{/{name}}}}} at line {line} has no open block")
            opened, opened_line = open_blocks.pop()
            if name != opened:
                raise ValueError(
                    f"closing tag {{{{/{name}}}}} at line {line} does not match {{{{#{opened}}}}} from line {opened_line}"
                )
        position = source.find("{{", match.end())

    if open_blocks:
        name, line = open_blocks[-1]
        raise ValueError(f"block {{{{#{name}}}}} opened at line {line} is never closed")


class CompiledTemplate:
    """A compiled pybars template; calling it renders the raw output string."""

    def __init__(self, identifier: str, source: str, template_function: Callable[..., Any]):
        self.identifier = identifier
        self.source = source
        self.template_function = template_function

    def __call__(self, params: Mapping[str, Any], helpers: Optional[Mapping[str, Callable]] = None) -> str:
        return str(self.template_function(params, helpers=helpers))


class TemplateCache:
    def __init__(
        self,
        source_resolver: Callable[[str, Optional[Path]], str] = resolve_template_source,
        compiler_factory: Callable[[], Any] = pybars.Compiler,
    ):
        self.source_resolver = source_resolver
        self._compiler = compiler_factory()
        self._entries: Dict[CacheKey, CompiledTemplate] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, identifier: str, directory: Optional[Union[str, Path]] = None) -> CompiledTemplate:
        key: CacheKey = (identifier, str(directory) if directory is not None else None)
        # held across the build so each key compiles at most once.
        with self._lock:
            compiled = self._entries.get(key)
            if compiled is not None:
                log.debug("template_cache_hit", template=describe_identifier(identifier))
                return compiled
            log.debug("template_cache_miss", template=describe_identifier(identifier), directory=key[1])
            compiled = self._build(identifier, directory)
            self._entries[key] = compiled
            return compiled

    def _build(self, identifier: str, directory: Optional[Union[str, Path]]) -> CompiledTemplate:
        source = self.source_resolver(identifier, directory).strip()
        try:
            check_template_syntax(source)
            with _COMPILE_LOCK:
                template_function = self._compiler.compile(source)
        except Exception as e:
            log.error("template_compilation_failed", template=describe_identifier(identifier), error=str(e))
            raise CompilationError(
                f"Failed to compile template '{describe_identifier(identifier)}': {e}", template=identifier
            ) from e
        log.debug("template_compiled_successfully", template=describe_identifier(identifier))
        return CompiledTemplate(identifier, source, template_function)
