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
import math
from typing import BinaryIO, Iterator, List

from Crypto.Random import get_random_bytes

import bittensor as bt


RANDOM_BLOCK_SIZE = 64 * 1024  # 64 KiB


def fragment_name(index: int) -> str:
    return "part_{}.bin".format(index)


def downloaded_fragment_name(index: int) -> str:
    return "downloaded_part_{}.bin".format(index)


def source_name(size: int) -> str:
    return "large_data_{}.bin".format(size)


def merged_name(size: int) -> str:
    return "merged_{}.bin".format(size)


def make_random_file(path: str, size: int) -> str:
    """
    Creates a file filled with cryptographically random bytes.

    Args:
        path (str): Where to write the file. Existing files are overwritten.
        size (int): Exact number of bytes to write.

    Returns:
        str: The path of the written file.

    Raises:
        ValueError: If size is negative.
        OSError: If the file cannot be created or written.
    """
    if size < 0:
        raise ValueError("size must be non-negative, got {}".format(size))

    remaining = size
    with open(path, "wb") as fout:
        while remaining > 0:
            block = get_random_bytes(min(RANDOM_BLOCK_SIZE, remaining))
            fout.write(block)
            remaining -= len(block)

    bt.logging.debug(f"generated {size} random bytes at {path}")
    return path


def iter_chunks(stream: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    """
    Generator that reads a binary stream in chunks of a fixed size.

    Every chunk holds exactly ``chunk_size`` bytes except possibly the last one,
    which holds whatever remains. An empty stream yields nothing.

    Args:
        stream (BinaryIO): Open binary stream to read from.
        chunk_size (int): The size of each chunk in bytes.

    Yields:
        bytes: The next chunk of data.

    Raises:
        ValueError: If 'chunk_size' is less than or equal to 0.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive, got {}".format(chunk_size))

    while True:
        chunk = stream.read(chunk_size)
        # Short reads from raw streams are topped up so only the last chunk is short.
        while chunk and len(chunk) < chunk_size:
            more = stream.read(chunk_size - len(chunk))
            if not more:
                break
            chunk += more
        if not chunk:
            return
        yield chunk


def fragment_sizes(total_size: int, chunk_size: int) -> List[int]:
    """
    Expected fragment lengths for a source of ``total_size`` bytes.

    >>> fragment_sizes(1000, 256)
    [256, 256, 256, 232]
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive, got {}".format(chunk_size))
    if total_size < 0:
        raise ValueError("total_size must be non-negative, got {}".format(total_size))

    count = math.ceil(total_size / chunk_size)
    sizes = [chunk_size] * count
    if count:
        sizes[-1] = total_size - chunk_size * (count - 1)
    return sizes


def split_file(src_path: str, chunk_size: int, out_dir: str) -> List[str]:
    """
    Splits a file into numbered fragment files.

    Fragments are written to ``out_dir`` as ``part_<i>.bin`` in source order.
    An empty source produces no fragments.

    Args:
        src_path (str): File to split.
        chunk_size (int): Fragment size in bytes.
        out_dir (str): Directory receiving the fragment files.

    Returns:
        List[str]: Fragment paths ordered by their offset in the source.

    Raises:
        ValueError: If chunk_size is not positive.
        OSError: If the source cannot be read or a fragment cannot be written.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive, got {}".format(chunk_size))

    chunk_paths = []
    with open(src_path, "rb") as fin:
        for i, chunk in enumerate(iter_chunks(fin, chunk_size)):
            chunk_path = os.path.join(out_dir, fragment_name(i))
            with open(chunk_path, "wb") as fout:
                fout.write(chunk)
            bt.logging.trace(f"wrote fragment {i} ({len(chunk)} bytes) to {chunk_path}")
            chunk_paths.append(chunk_path)

    return chunk_paths
