"""
Document Loader
===============
Reads a report into a RawDocument.
"""

from pathlib import Path
from typing import Union

from config_logging import get_logger, handle_errors
from .models import RawDocument

logger = get_logger('report_summary.loader')


@handle_errors(logger)
def load_document(path: Union[str, Path], encoding: str = 'utf-8') -> RawDocument:
    """
    Read a report file into an ordered sequence of lines.

    Undecodable bytes are replaced rather than rejected.

    Raises:
        InputAccessError: the file is missing, unreadable or a directory
    """
    path = Path(path)
    with open(path, 'r', encoding=encoding, errors='replace') as f:
        text = f.read()
    document = load_text(text, source=path.name)
    logger.debug(f"Loaded {len(document)} lines from {path.name}",
                 source=path.name, line_count=len(document))
    return document


def load_text(text: str, source: str = "<text>") -> RawDocument:
    """Wrap already-loaded text; a BOM at the start is dropped."""
    if text.startswith('\ufeff'):
        text = text[1:]
    return RawDocument.from_text(text, source=source)
