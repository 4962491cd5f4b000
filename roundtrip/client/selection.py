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
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

import bittensor as bt

from .facade import NodeSelectionError, NodeSet, RemoteStore


class SelectionPolicy(NamedTuple):
    method: str
    trusted_only: bool

    def describe(self) -> str:
        method = self.method or "stake"
        nodes = "trusted nodes" if self.trusted_only else "mixed nodes"
        return "{}, method={}".format(nodes, method)


# Tried in order until one returns a usable node set.
SELECTION_POLICIES: List[SelectionPolicy] = [
    SelectionPolicy("", True),
    SelectionPolicy("", False),
    SelectionPolicy("random", True),
    SelectionPolicy("random", False),
]


def select_with_fallback(
    store: RemoteStore,
    replicas: int,
    policies: Sequence[SelectionPolicy] = SELECTION_POLICIES,
    exclude: Optional[Iterable[str]] = None,
) -> Tuple[NodeSet, SelectionPolicy]:
    """
    Selects storage nodes, falling back through ``policies`` in order.

    A policy fails when the store raises or returns no nodes. Errors other than
    ``NodeSelectionError``, such as a metagraph sync timing out, are treated the
    same way so a transient failure does not skip the remaining policies.

    Args:
        store (RemoteStore): Store to select nodes from.
        replicas (int): Number of replicas requested from each policy.
        policies (Sequence[SelectionPolicy]): Policies in priority order.
        exclude (Iterable[str], optional): Node hotkeys to exclude.

    Returns:
        Tuple[NodeSet, SelectionPolicy]: The selected nodes and the policy that produced them.

    Raises:
        NodeSelectionError: If every policy fails or returns no nodes.
    """
    exclude = list(exclude or [])
    last_error = None

    for i, policy in enumerate(policies):
        bt.logging.debug(
            f"selecting {replicas} node(s), strategy {i + 1}: {policy.describe()}"
        )
        try:
            nodes = store.select_nodes(
                replicas,
                exclude=exclude,
                method=policy.method,
                trusted_only=policy.trusted_only,
            )
        except Exception as e:
            bt.logging.warning(f"strategy {i + 1} ({policy.describe()}) failed: {e}")
            last_error = e
            continue

        if len(nodes) == 0:
            last_error = NodeSelectionError("no storage nodes returned")
            bt.logging.warning(f"strategy {i + 1} ({policy.describe()}) returned no nodes")
            continue

        bt.logging.info(
            f"selected {len(nodes)} storage node(s) (trusted: {len(nodes.trusted)}, "
            f"discovered: {len(nodes.discovered)}) with {policy.describe()}"
        )
        return nodes, policy

    raise NodeSelectionError(
        "all {} node selection strategies failed, last error: {}".format(
            len(policies), last_error
        )
    ) from last_error
