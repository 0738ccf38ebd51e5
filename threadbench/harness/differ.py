"""
Tolerant line-by-line file comparison.
"""

from pathlib import Path
from typing import Iterator, Optional, Union

PathLike = Union[str, Path]


def _next_line(lines: Iterator[str]) -> Optional[str]:
    line = next(lines, None)
    return None if line is None else line.rstrip("\r\n")


def _skip_blank(lines: Iterator[str], line: Optional[str]) -> Optional[str]:
    while line is not None and not line.strip():
        line = _next_line(lines)
    return line


def compare_files(path1: PathLike, path2: PathLike) -> int:
    """Checks line-by-line if two files are equal.

    Trailing whitespace on each line is ignored, as are extra blank lines at
    the end of either file.

    Returns:
        A positive count of comparisons if the files are equal, or the
        negated 1-based line number where they first differ.

    Raises:
        OSError: If either file cannot be read.
    """
    count = 0

    with open(path1, encoding="utf-8") as file1, open(path2, encoding="utf-8") as file2:
        lines1 = iter(file1)
        lines2 = iter(file2)

        line1 = _next_line(lines1)
        line2 = _next_line(lines2)

        while True:
            count += 1

            # compare lines until either file runs out
            if line1 is not None and line2 is not None:
                if line1.rstrip() != line2.rstrip():
                    return -count

                line1 = _next_line(lines1)
                line2 = _next_line(lines2)
            else:
                # discard extra blank lines at the end of either file
                line1 = _skip_blank(lines1, line1)
                line2 = _skip_blank(lines2, line2)

                # only equal if both are exhausted
                if line1 is None and line2 is None:
                    return count

                return -count
