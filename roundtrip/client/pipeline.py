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
from dataclasses import asdict, dataclass, field
from typing import List, Optional

import bittensor as bt

from ..shared.events import log_event
from ..shared.fragment import (
    downloaded_fragment_name,
    fragment_sizes,
    make_random_file,
    merged_name,
    source_name,
    split_file,
)
from ..shared.merge import merge_files
from ..shared.verify import files_equal
from ..shared.workdir import working_directory
from .config import DemoConfig
from .facade import NodeSet, RemoteStore, RemoteStoreError
from .identity import AddressCheck, InvalidPrivateKeyError, check_address
from .selection import SELECTION_POLICIES, SelectionPolicy, select_with_fallback


@dataclass
class FragmentResult:
    """Outcome of one fragment's trip through the store, keyed by its original index."""

    index: int
    path: str
    size: int
    uploaded: bool = False
    content_handle: Optional[str] = None
    hotkey: Optional[str] = None
    downloaded: bool = False
    download_path: Optional[str] = None
    verified: Optional[bool] = None  # None until compared
    error: Optional[str] = None


@dataclass
class RunResult:
    source_path: str
    total_size: int
    fragment_size: int
    fragments: List[FragmentResult] = field(default_factory=list)
    nodes: Optional[NodeSet] = None
    policy: Optional[SelectionPolicy] = None
    merged_path: Optional[str] = None
    merged_verified: Optional[bool] = None  # None when the merge was skipped
    address_check: Optional[AddressCheck] = None

    @property
    def uploaded_count(self) -> int:
        return sum(1 for f in self.fragments if f.uploaded)

    @property
    def downloaded_count(self) -> int:
        return sum(1 for f in self.fragments if f.downloaded)

    @property
    def verified_count(self) -> int:
        return sum(1 for f in self.fragments if f.verified)

    @property
    def succeeded(self) -> bool:
        """True when every fragment verified and the merged file matches the source."""
        if not self.fragments:
            return True
        return (
            self.verified_count == len(self.fragments)
            and self.merged_verified is True
        )

    def summary(self) -> dict:
        return {
            "total_size": self.total_size,
            "fragment_size": self.fragment_size,
            "fragments": len(self.fragments),
            "uploaded": self.uploaded_count,
            "downloaded": self.downloaded_count,
            "verified": self.verified_count,
            "merged_verified": self.merged_verified,
            "policy": self.policy._asdict() if self.policy else None,
            "address_matches": self.address_check.matches if self.address_check else None,
            "succeeded": self.succeeded,
        }


def run_address_check(config: DemoConfig) -> Optional[AddressCheck]:
    """Checks the configured private key against the expected address. Never fatal."""
    if not config.private_key or not config.expected_address:
        bt.logging.debug("no private key or expected address configured, skipping address check")
        return None

    try:
        result = check_address(config.private_key, config.expected_address)
    except InvalidPrivateKeyError as e:
        bt.logging.warning(f"could not parse private key: {e}")
        return None

    bt.logging.info(f"address derived from private key: {result.derived_address}")
    bt.logging.info(f"address provided:                 {result.expected_address}")
    if result.matches:
        bt.logging.success("addresses match")
    else:
        bt.logging.warning("address mismatch, check the private key")
    return result


def upload_fragments(
    store: RemoteStore, nodes: NodeSet, fragments: List[FragmentResult]
) -> None:
    """Stores every fragment in order. A failed fragment is recorded and skipped."""
    for frag in fragments:
        bt.logging.info(
            f"[upload {frag.index + 1}/{len(fragments)}] {os.path.basename(frag.path)}"
        )
        try:
            with open(frag.path, "rb") as f:
                data = f.read()
            receipt = store.put(data, nodes)
        except (RemoteStoreError, OSError) as e:
            frag.error = f"upload failed: {e}"
            bt.logging.error(f"fragment {frag.index} {frag.error}")
            log_event("upload", asdict(frag))
            continue

        frag.uploaded = True
        frag.content_handle = receipt.data_hash
        frag.hotkey = receipt.hotkey
        bt.logging.success(f"uploaded fragment {frag.index}, data hash: {receipt.data_hash}")
        log_event("upload", asdict(frag))


def download_fragments(
    store: RemoteStore,
    nodes: NodeSet,
    fragments: List[FragmentResult],
    workdir: str,
    verify_proof: bool = True,
) -> None:
    """Retrieves every uploaded fragment by its handle and compares it to the original."""
    for frag in fragments:
        if not frag.uploaded:
            continue

        download_path = os.path.join(workdir, downloaded_fragment_name(frag.index))
        bt.logging.info(f"downloading fragment {frag.index + 1} (data hash: {frag.content_handle})")
        try:
            data = store.get(frag.content_handle, nodes, verify_proof=verify_proof)
            with open(download_path, "wb") as f:
                f.write(data)
        except (RemoteStoreError, OSError) as e:
            frag.error = f"download failed: {e}"
            bt.logging.error(f"fragment {frag.index} {frag.error}")
            log_event("download", asdict(frag))
            continue

        frag.downloaded = True
        frag.download_path = download_path
        frag.verified = files_equal(frag.path, download_path)
        if frag.verified:
            bt.logging.success(f"fragment {frag.index} matches the original")
        else:
            bt.logging.error(f"fragment {frag.index} differs from the original")
        log_event("download", asdict(frag))


def merge_downloads(result: RunResult, workdir: str) -> None:
    """Reassembles the downloaded fragments in index order and checks the whole file."""
    downloaded = [f.download_path for f in result.fragments if f.downloaded]
    if not downloaded:
        bt.logging.info("nothing downloaded, skipping merge")
        return

    merged_path = os.path.join(workdir, merged_name(result.total_size))
    merge_files(downloaded, merged_path)
    result.merged_path = merged_path
    bt.logging.info(f"merged {len(downloaded)} fragment(s) into {merged_path}")

    result.merged_verified = files_equal(result.source_path, merged_path)
    if result.merged_verified:
        bt.logging.success("merged file is identical to the original")
    else:
        bt.logging.error("merged file differs from the original")


def run_pipeline(
    store: RemoteStore,
    config: DemoConfig,
    workdir: str,
    policies: List[SelectionPolicy] = SELECTION_POLICIES,
) -> RunResult:
    """
    Runs one generate, split, upload, download, verify and merge round trip.

    Fragment failures are recorded on their ``FragmentResult`` and never stop
    the run. Generator and merge I/O errors, and failing to select any nodes,
    are fatal.

    Args:
        store (RemoteStore): Store to round trip the fragments through.
        config (DemoConfig): Run settings.
        workdir (str): Existing directory owned by this run.
        policies (List[SelectionPolicy]): Node selection policies in priority order.

    Returns:
        RunResult: Per fragment results and the merged file verdict.

    Raises:
        OSError: If the source file cannot be generated or split, the fragments do not
            have the expected sizes, or the merge fails.
        NodeSelectionError: If no node selection policy yields nodes.
    """
    address_check = run_address_check(config)

    source_path = os.path.join(workdir, source_name(config.total_size))
    bt.logging.info(f"generating {config.total_size} byte test file: {source_path}")
    make_random_file(source_path, config.total_size)

    fragment_paths = split_file(source_path, config.fragment_size, workdir)
    bt.logging.info(
        f"split into {len(fragment_paths)} fragment(s) of up to {config.fragment_size} bytes"
    )

    result = RunResult(
        source_path=source_path,
        total_size=config.total_size,
        fragment_size=config.fragment_size,
        fragments=[
            FragmentResult(index=i, path=path, size=os.path.getsize(path))
            for i, path in enumerate(fragment_paths)
        ],
        address_check=address_check,
    )

    expected_sizes = fragment_sizes(config.total_size, config.fragment_size)
    actual_sizes = [f.size for f in result.fragments]
    if actual_sizes != expected_sizes:
        raise OSError(
            f"split produced fragment sizes {actual_sizes}, expected {expected_sizes}"
        )

    if not result.fragments:
        bt.logging.info("source is empty, nothing to upload")
        log_event("run", result.summary())
        return result

    nodes, policy = select_with_fallback(store, config.replicas, policies)
    result.nodes = nodes
    result.policy = policy

    upload_fragments(store, nodes, result.fragments)
    download_fragments(store, nodes, result.fragments, workdir, config.verify_proof)
    merge_downloads(result, workdir)

    log_event("run", result.summary())
    return result


def run_roundtrip(store: RemoteStore, config: DemoConfig, **kwargs) -> RunResult:
    """Runs ``run_pipeline`` inside a working directory removed when the run ends."""
    with working_directory(config.workdir) as workdir:
        return run_pipeline(store, config, workdir, **kwargs)
