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
import base64
from typing import Iterable, List, Optional

from Crypto.Random import random
from nacl.exceptions import CryptoError

import bittensor as bt

from ..protocol import RetrieveUser, StoreUser
from ..shared.utils import content_handle
from .encryption import decrypt_data, encrypt_data, is_unencrypted_payload
from .facade import (
    NodeSelectionError,
    NodeSet,
    ProofVerificationError,
    RemoteStore,
    RemoteStoreError,
    StoreReceipt,
)


def _response_data_hash(response) -> Optional[str]:
    data_hash = response.data_hash
    if isinstance(data_hash, bytes):
        data_hash = data_hash.decode("utf-8")
    return data_hash


class SubnetStore(RemoteStore):
    """
    Remote store backed by the validators of a Bittensor storage subnet.

    Fragments are encrypted with the wallet before they leave the client, sent
    to validators as ``StoreUser`` synapses and fetched back with
    ``RetrieveUser``. The handle is the ``data_hash`` the validator returns,
    which is the content hash of the encrypted payload.

    Args:
        wallet (bt.wallet): Wallet used to sign requests and seal encryption keys.
        subtensor (bt.subtensor): Chain connection used to load the metagraph.
        netuid (int): Storage subnet uid.
        stake_limit (float): Minimum stake for a validator to count as trusted.
        timeout (float): Per-query timeout in seconds.
        encrypt (bool): Encrypt fragments before storing them.
        dendrite (bt.dendrite, optional): Dendrite to query with. Built from the wallet if omitted.
        metagraph (bt.metagraph, optional): Preloaded metagraph.
    """

    def __init__(
        self,
        wallet: "bt.wallet",
        subtensor: "bt.subtensor" = None,
        netuid: int = 21,
        stake_limit: float = 500,
        timeout: float = 270,
        encrypt: bool = True,
        dendrite: "bt.dendrite" = None,
        metagraph: "bt.metagraph" = None,
    ):
        self.wallet = wallet
        self.subtensor = subtensor
        self.netuid = int(netuid)
        self.stake_limit = stake_limit
        self.timeout = timeout
        self.encrypt = encrypt
        self.dendrite = dendrite or bt.dendrite(wallet=wallet)
        self._metagraph = metagraph

    @property
    def metagraph(self) -> "bt.metagraph":
        if self._metagraph is None:
            try:
                self._metagraph = self.subtensor.metagraph(self.netuid)
            except Exception as e:
                raise NodeSelectionError(
                    f"could not load metagraph for netuid {self.netuid}: {e}"
                ) from e
            bt.logging.debug("metagraph:", self._metagraph)
        return self._metagraph

    def _candidate_uids(self, exclude: Iterable[str]):
        mg = self.metagraph
        excluded = set(exclude)
        trusted, discovered = [], []
        for uid in range(len(mg.axons)):
            # Only validators accept user store and retrieve requests.
            if not mg.axons[uid].is_serving or not mg.validator_permit[uid]:
                continue
            if mg.hotkeys[uid] in excluded:
                continue
            if float(mg.S[uid]) >= self.stake_limit:
                trusted.append(uid)
            else:
                discovered.append(uid)
        return trusted, discovered

    def select_nodes(
        self,
        replicas: int,
        exclude: Optional[Iterable[str]] = None,
        method: str = "",
        trusted_only: bool = True,
    ) -> NodeSet:
        trusted, discovered = self._candidate_uids(exclude or [])
        bt.logging.trace(f"candidate uids trusted: {trusted} discovered: {discovered}")

        if method == "":
            stake = lambda uid: float(self.metagraph.S[uid])
            trusted = sorted(trusted, key=stake, reverse=True)
            discovered = sorted(discovered, key=stake, reverse=True)
        elif method == "random":
            trusted = random.sample(trusted, len(trusted))
            discovered = random.sample(discovered, len(discovered))
        else:
            raise NodeSelectionError(f"unknown selection method: {method}")

        if trusted_only:
            discovered = []

        ordered = [(uid, True) for uid in trusted] + [(uid, False) for uid in discovered]
        if len(ordered) < replicas:
            raise NodeSelectionError(
                f"need {replicas} node(s) with stake >= {self.stake_limit}"
                if trusted_only
                else f"need {replicas} node(s), only {len(ordered)} serving validators"
            )

        nodes = NodeSet()
        for uid, is_trusted in ordered[:replicas]:
            axon = self.metagraph.axons[uid]
            (nodes.trusted if is_trusted else nodes.discovered).append(axon)
        return nodes

    def _query(self, axons: List["bt.AxonInfo"], synapse: "bt.Synapse"):
        responses = self.dendrite.query(
            axons, synapse, timeout=self.timeout, deserialize=False
        )
        if not isinstance(responses, list):
            responses = [responses]
        return responses

    def put(self, data: bytes, nodes: NodeSet) -> StoreReceipt:
        axons = nodes.all
        if not axons:
            raise RemoteStoreError("no nodes to store data on")

        if self.encrypt:
            encrypted_data, encryption_payload = encrypt_data(data, self.wallet)
        else:
            encrypted_data, encryption_payload = data, "{}"

        synapse = StoreUser(
            encrypted_data=base64.b64encode(encrypted_data).decode("utf-8"),
            encryption_payload=encryption_payload,
        )
        bt.logging.trace(f"store synapse encrypted_data: {synapse.encrypted_data[:100]}")

        responses = self._query(axons, synapse)
        failure_modes = {"code": [], "message": []}
        for axon, response in zip(axons, responses):
            data_hash = _response_data_hash(response)
            if response.dendrite.status_code != 200 or not data_hash:
                failure_modes["code"].append(response.dendrite.status_code)
                failure_modes["message"].append(response.dendrite.status_message)
                continue

            bt.logging.debug(f"received data hash {data_hash} from {axon.hotkey}")
            return StoreReceipt(data_hash=data_hash, hotkey=axon.hotkey)

        raise RemoteStoreError(f"store failed, response codes & messages {failure_modes}")

    def get(self, data_hash: str, nodes: NodeSet, verify_proof: bool = True) -> bytes:
        axons = nodes.all
        if not axons:
            raise RemoteStoreError("no nodes to retrieve data from")

        synapse = RetrieveUser(data_hash=data_hash)
        responses = self._query(axons, synapse)

        failure_modes = {"code": [], "message": []}
        proof_failures = 0
        for axon, response in zip(axons, responses):
            if response.dendrite.status_code != 200 or response.encrypted_data is None:
                failure_modes["code"].append(response.dendrite.status_code)
                failure_modes["message"].append(response.dendrite.status_message)
                continue

            encrypted_data = base64.b64decode(response.encrypted_data)
            if verify_proof and content_handle(encrypted_data) != data_hash:
                proof_failures += 1
                bt.logging.warning(
                    f"hash of data from {axon.hotkey} does not match {data_hash}"
                )
                continue

            if is_unencrypted_payload(response.encryption_payload):
                bt.logging.warning("No encryption payload found. Unencrypted data.")
                return encrypted_data

            try:
                return decrypt_data(encrypted_data, response.encryption_payload, self.wallet)
            except (CryptoError, ValueError) as e:
                failure_modes["code"].append(response.dendrite.status_code)
                failure_modes["message"].append(f"decryption failed: {e}")

        if proof_failures:
            raise ProofVerificationError(
                f"{proof_failures} response(s) for {data_hash} failed hash verification"
            )
        raise RemoteStoreError(f"retrieve failed, response codes & messages {failure_modes}")

    def close(self):
        if self.subtensor is not None:
            self.subtensor.close()
            bt.logging.debug("closing subtensor connection")
