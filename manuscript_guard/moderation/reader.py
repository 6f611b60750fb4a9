from __future__ import annotations

import codecs
import io
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Union

logger = logging.getLogger(__name__)

BOM = "\ufeff"
IDEOGRAPHIC_SPACE = "\u3000"

TextSource = Union[str, bytes, os.PathLike]


def normalize_line(line: str) -> str:
    """Drop a leading BOM, ideographic spaces and carriage returns, then trim."""
    if line.startswith(BOM):
        line = line[1:]
    return line.replace(IDEOGRAPHIC_SPACE, "").replace("\r", "").strip()


def _normalized(raw_lines: Iterable[str]) -> Iterator[str]:
    for raw in raw_lines:
        line = normalize_line(raw)
        if line:
            yield line


class LineSource:
    """
    Restartable sequence of normalised, non-empty text lines.

    Files are streamed: every iteration reopens the file and decodes it
    lazily, replacing malformed byte sequences with U+FFFD. In-memory
    strings skip decoding entirely.
    """

    def __init__(self, source: TextSource, charset: str = "utf-8"):
        codecs.lookup(charset)
        self.charset = charset
        self._text: Union[str, None] = None
        self._path: Union[Path, None] = None
        if isinstance(source, str):
            self._text = source
        elif isinstance(source, (bytes, bytearray)):
            self._text = bytes(source).decode(charset, errors="replace")
        else:
            self._path = Path(source)

    @property
    def path(self) -> Union[Path, None]:
        return self._path

    def open_check(self) -> None:
        """Raise OSError now if the backing file cannot be opened."""
        if self._path is None:
            return
        with self._path.open("rb") as handle:
            handle.read(0)

    def __iter__(self) -> Iterator[str]:
        if self._text is not None:
            # Same line breaks as files opened with newline=None: \n, \r and \r\n only.
            return _normalized(io.StringIO(self._text, newline=None))
        return self._iter_file()

    def _iter_file(self) -> Iterator[str]:
        logger.debug("Streaming lines from %s as %s", self._path, self.charset)
        with self._path.open("r", encoding=self.charset, errors="replace", newline=None) as handle:
            yield from _normalized(handle)

    def to_list(self) -> List[str]:
        return list(self)


def read_lines(source: TextSource, charset: str = "utf-8") -> LineSource:
    return LineSource(source, charset)
