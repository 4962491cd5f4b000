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
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional


class RemoteStoreError(Exception):
    """Raised when the storage network fails to store, find or return data."""


class NodeSelectionError(RemoteStoreError):
    """Raised when no usable set of storage nodes could be selected."""


class ProofVerificationError(RemoteStoreError):
    """Raised when downloaded data does not match the proof supplied for it."""


@dataclass
class NodeSet:
    """Storage nodes chosen for a run, split by trust."""

    trusted: List[Any] = field(default_factory=list)
    discovered: List[Any] = field(default_factory=list)

    @property
    def all(self) -> List[Any]:
        return list(self.trusted) + list(self.discovered)

    def __len__(self):
        return len(self.trusted) + len(self.discovered)


@dataclass
class StoreReceipt:
    data_hash: str  # Content handle used to retrieve the data
    hotkey: Optional[str] = None  # Node that accepted the data


class RemoteStore(ABC):
    """
    Content-addressed store backed by a storage network.

    Callers select nodes once, then ``put`` fragments through them and ``get``
    fragments back by the handle each ``put`` returned. How a store talks to
    the network, retries internally or proves integrity is its own business.
    """

    @abstractmethod
    def select_nodes(
        self,
        replicas: int,
        exclude: Optional[Iterable[str]] = None,
        method: str = "",
        trusted_only: bool = True,
    ) -> NodeSet:
        """
        Selects storage nodes for upload and download.

        Args:
            replicas (int): Number of nodes each fragment should be stored on.
            exclude (Iterable[str], optional): Node hotkeys that must not be selected.
            method (str): Selection method, ``""`` for stake order or ``"random"``.
            trusted_only (bool): Only select trusted nodes.

        Raises:
            NodeSelectionError: If not enough nodes satisfy the request.
        """

    @abstractmethod
    def put(self, data: bytes, nodes: NodeSet) -> StoreReceipt:
        """Stores ``data`` and returns its receipt. Raises RemoteStoreError."""

    @abstractmethod
    def get(self, data_hash: str, nodes: NodeSet, verify_proof: bool = True) -> bytes:
        """
        Retrieves the data stored under ``data_hash``.

        Raises:
            ProofVerificationError: If ``verify_proof`` is set and no response passes the check.
            RemoteStoreError: If the data could not be retrieved.
        """

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
