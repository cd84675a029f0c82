# promptkit/core/templating/source.py
"""
Resolves a template identifier to template source text.

With a template directory configured, the identifier is looked up as a file
name (trying `.md` then `.txt` when it has no extension). When no file
matches, or no directory is configured, the identifier itself is the source.
"""
import errno
from pathlib import Path
from typing import Optional, Union
import structlog

from promptkit.config.settings import TEMPLATE_EXTENSIONS
from promptkit.exceptions import SourceResolutionError

log = structlog.get_logger(__name__)

# an inline template used as a file name can fail in these ways; none is an error.
_NOT_FOUND_ERRNOS = {errno.ENOENT, errno.ENOTDIR, errno.ENAMETOOLONG}


def _try_read_file(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise SourceResolutionError(f"template file '{path}' is not valid utf-8: {e}", template=str(path)) from e
    except ValueError:
        # embedded null byte: not a usable file name.
        return None
    except OSError as e:
        if e.errno in _NOT_FOUND_ERRNOS:
            return None
        raise SourceResolutionError(f"failed to read template file '{path}': {e}", template=str(path)) from e


def read_source(path: Path) -> Optional[str]:
    if path.suffix:
        return _try_read_file(path)
    if not path.name:
        return None
    for extension in TEMPLATE_EXTENSIONS:
        text = _try_read_file(path.with_name(path.name + extension))
        if text is not None:
            return text
    return None


def resolve_template_source(identifier: str, directory: Optional[Union[str, Path]] = None) -> str:
    if not directory or not identifier:
        return identifier or ""
    path = Path(directory) / identifier
    source = read_source(path)
    if source is None:
        log.debug("template_file_not_found_using_literal_source", directory=str(directory))
        return identifier
    log.debug("template_file_loaded", path=str(path))
    return source
