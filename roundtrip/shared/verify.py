# The MIT License (MIT)
# Copyright © 2023 Yuma Rao
# Copyright © 2023 philanthrope

# Permission is hereby granted, free of charge, to any person obtaining a copy of this software and associated
# documentation files (the “Software”), to deal in the Software without restriction, including without limitation
# the rights to use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so, subject to the following conditions:

# The above copyright notice and this permission notice shall be included in all copies or substantial portions of
# the Software.

# THE SOFTWARE IS PROVIDED “AS IS”, WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO
# THE WARRANTIES OF MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL
# THE AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION
# OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER
# DEALINGS IN THE SOFTWARE.
import os
from enum import Enum

import bittensor as bt


COMPARE_BUFFER_SIZE = 32 * 1024  # 32 KiB


class Comparison(Enum):
    """Outcome of comparing two files."""

    EQUAL = "equal"
    DIFFERENT = "different"
    UNREADABLE = "unreadable"

    def __bool__(self):
        return self is Comparison.EQUAL


def bytes_equal(a: bytes, b: bytes) -> bool:
    if len(a) != len(b):
        return False
    return a == b


def compare_files(path_a: str, path_b: str) -> Comparison:
    """
    Compares two files byte for byte.

    Sizes are compared first and a size mismatch returns ``DIFFERENT`` without
    reading either file. Otherwise both files are scanned in fixed-size blocks.

    Args:
        path_a (str): First file.
        path_b (str): Second file.

    Returns:
        Comparison: ``EQUAL`` or ``DIFFERENT``, or ``UNREADABLE`` when either
        file cannot be opened or read.
    """
    try:
        if os.path.getsize(path_a) != os.path.getsize(path_b):
            return Comparison.DIFFERENT

        with open(path_a, "rb") as fa, open(path_b, "rb") as fb:
            while True:
                block_a = fa.read(COMPARE_BUFFER_SIZE)
                block_b = fb.read(COMPARE_BUFFER_SIZE)
                if not bytes_equal(block_a, block_b):
                    return Comparison.DIFFERENT
                if not block_a:
                    return Comparison.EQUAL
    except OSError as e:
        bt.logging.debug(f"could not compare {path_a} and {path_b}: {e}")
        return Comparison.UNREADABLE


def files_equal(path_a: str, path_b: str) -> bool:
    """True only when both files are readable and identical."""
    return compare_files(path_a, path_b) is Comparison.EQUAL
