import os
import shutil
import tempfile
from contextlib import contextmanager
from typing import Iterator, Optional

import bittensor as bt


@contextmanager
def working_directory(path: Optional[str] = None) -> Iterator[str]:
    """
    Scopes the lifetime of a run's working directory.

    The directory is created on entry and removed with everything in it on
    exit, whether the body returns or raises. When ``path`` is None a fresh
    temporary directory is used. When ``path`` already exists a fresh
    directory is created inside it and only that one is removed, so existing
    files under ``path`` are never touched.

    Args:
        path (str, optional): Directory to create and own for the run.

    Yields:
        str: Absolute path of the working directory.
    """
    if path is None:
        workdir = tempfile.mkdtemp(prefix="roundtrip_")
    else:
        path = os.path.abspath(os.path.expanduser(path))
        if os.path.exists(path):
            workdir = tempfile.mkdtemp(prefix="roundtrip_", dir=path)
        else:
            os.makedirs(path)
            workdir = path
    bt.logging.debug(f"working directory: {workdir}")

    try:
        yield workdir
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
        bt.logging.debug(f"removed working directory: {workdir}")
