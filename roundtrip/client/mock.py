from typing import Dict, Iterable, List, Optional

from Crypto.Random import random

import bittensor as bt

from ..shared.utils import content_handle
from .facade import (
    NodeSelectionError,
    NodeSet,
    ProofVerificationError,
    RemoteStore,
    RemoteStoreError,
    StoreReceipt,
)


class MemoryStore(RemoteStore):
    """
    In-memory content-addressed store standing in for the storage network.

    Nodes are plain hotkey strings. Data is keyed by the same content hash the
    subnet validators return, so handles look like real ones.
    """

    def __init__(self, trusted: int = 1, discovered: int = 0):
        self.trusted_nodes: List[str] = [f"trusted-{i}" for i in range(trusted)]
        self.discovered_nodes: List[str] = [f"discovered-{i}" for i in range(discovered)]
        self.objects: Dict[str, bytes] = {}
        self.put_calls = 0
        self.get_calls = 0
        self.select_calls = 0

    def select_nodes(
        self,
        replicas: int,
        exclude: Optional[Iterable[str]] = None,
        method: str = "",
        trusted_only: bool = True,
    ) -> NodeSet:
        self.select_calls += 1
        excluded = set(exclude or [])
        trusted = [n for n in self.trusted_nodes if n not in excluded]
        discovered = [] if trusted_only else [n for n in self.discovered_nodes if n not in excluded]

        if len(trusted) + len(discovered) < replicas:
            raise NodeSelectionError(
                f"need {replicas} node(s), only {len(trusted) + len(discovered)} available"
            )

        if method == "random":
            trusted = random.sample(trusted, len(trusted))
            discovered = random.sample(discovered, len(discovered))
        elif method != "":
            raise NodeSelectionError(f"unknown selection method: {method}")

        return NodeSet(trusted=trusted, discovered=discovered)

    def put(self, data: bytes, nodes: NodeSet) -> StoreReceipt:
        self.put_calls += 1
        if len(nodes) == 0:
            raise RemoteStoreError("no nodes to store data on")

        data_hash = content_handle(data)
        self.objects[data_hash] = bytes(data)
        bt.logging.trace(f"memory store: stored {len(data)} bytes under {data_hash}")
        return StoreReceipt(data_hash=data_hash, hotkey=nodes.all[0])

    def get(self, data_hash: str, nodes: NodeSet, verify_proof: bool = True) -> bytes:
        self.get_calls += 1
        try:
            data = self.objects[data_hash]
        except KeyError:
            raise RemoteStoreError(f"no data stored under {data_hash}")

        if verify_proof and content_handle(data) != data_hash:
            raise ProofVerificationError(f"content hash mismatch for {data_hash}")
        return data
