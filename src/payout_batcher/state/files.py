"""
Line-oriented batch files.

The input file holds one base64 envelope per line; the output file
receives one signed envelope per line.
"""

import os
from pathlib import Path
from typing import IO, Iterator, List, Optional, Tuple, Union

import structlog

logger = structlog.get_logger(__name__)

PathLike = Union[str, Path]


class LineSource:
    """
    Reads envelope lines in order.

    Yields (line_number, text) pairs with surrounding whitespace removed.
    Blank lines at the end of the file end the batch; a blank line that is
    followed by more content is yielded like any other line.
    """

    def __init__(self, path: PathLike):
        self.path = Path(path)
        self._file: Optional[IO[str]] = None

    def open(self) -> "LineSource":
        if self._file is None:
            self._file = self.path.open("r", encoding="utf-8", errors="replace")
            logger.info("input_opened", path=str(self.path))
        return self

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "LineSource":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def __iter__(self) -> Iterator[Tuple[int, str]]:
        self.open()
        pending_blank: List[int] = []

        for line_number, raw in enumerate(self._file, start=1):
            text = raw.strip()
            if not text:
                pending_blank.append(line_number)
                continue

            for blank_number in pending_blank:
                yield blank_number, ""
            pending_blank.clear()

            yield line_number, text


class LineSink:
    """
    Writes signed envelopes, one per line.

    The file is truncated when opened. Every write is flushed and the file
    is synced to disk on close.
    """

    def __init__(self, path: PathLike):
        self.path = Path(path)
        self.lines_written = 0
        self._file: Optional[IO[str]] = None

    def open(self) -> "LineSink":
        if self._file is None:
            self._file = self.path.open("w", encoding="utf-8")
            logger.info("output_opened", path=str(self.path))
        return self

    def write(self, text: str) -> None:
        if self._file is None:
            raise RuntimeError("Line sink is not open")
        self._file.write(text)
        self._file.write("\n")
        self._file.flush()
        self.lines_written += 1

    def close(self) -> None:
        if self._file is None:
            return
        self._file.flush()
        os.fsync(self._file.fileno())
        self._file.close()
        self._file = None
        logger.info("output_closed", path=str(self.path), lines=self.lines_written)

    def __enter__(self) -> "LineSink":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()
