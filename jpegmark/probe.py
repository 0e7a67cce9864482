import os
from pathlib import Path
from typing import Union


def size_of(path: Union[str, Path], kilobytes: bool = False) -> Union[int, float]:
    """Return the size of a file in bytes, or in KB when ``kilobytes`` is set.

    Raises OSError if the file is missing or cannot be stat'ed.
    """
    size = os.stat(path).st_size
    if kilobytes:
        return size / 1024
    return size
