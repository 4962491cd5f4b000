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
import shutil
from typing import List, Sequence

import bittensor as bt


def merge_files(paths: Sequence[str], out_path: str) -> List[int]:
    """
    Concatenates files into ``out_path`` in the order given.

    Reassembly is positional: the caller is responsible for passing the
    fragments in their original order.

    Args:
        paths (Sequence[str]): Fragment files to concatenate.
        out_path (str): Destination file, truncated if it exists.

    Returns:
        List[int]: Number of bytes copied from each fragment.

    Raises:
        OSError: If the output or any fragment cannot be opened or copied. The
            merge stops at the failing fragment and the partial output is left
            in place.
    """
    written = []
    with open(out_path, "wb") as fout:
        for i, path in enumerate(paths):
            try:
                with open(path, "rb") as fin:
                    start = fout.tell()
                    shutil.copyfileobj(fin, fout)
                    count = fout.tell() - start
            except OSError as e:
                raise OSError("failed to merge fragment {}: {}".format(path, e)) from e

            bt.logging.debug(f"merged fragment {i + 1}: {count} bytes")
            written.append(count)

    return written
