import base64
from types import SimpleNamespace
from unittest import TestCase

from roundtrip.client.facade import (
    NodeSelectionError,
    NodeSet,
    ProofVerificationError,
    RemoteStoreError,
)
from roundtrip.client.network import SubnetStore
from roundtrip.client.selection import SELECTION_POLICIES, select_with_fallback
from roundtrip.shared.utils import content_handle


def make_wallet(seed=b"\x01"):
    return SimpleNamespace(coldkeypub=SimpleNamespace(public_key=seed * 32))


def make_metagraph(stakes, permits=None, serving=None):
    n = len(stakes)
    permits = permits if permits is not None else [True] * n
    serving = serving if serving is not None else [True] * n
    hotkeys = [f"hotkey-{uid}" for uid in range(n)]
    axons = [
        SimpleNamespace(hotkey=hotkeys[uid], is_serving=serving[uid]) for uid in range(n)
    ]
    return SimpleNamespace(axons=axons, hotkeys=hotkeys, validator_permit=permits, S=stakes)


def response(status_code=200, status_message="Success", **fields):
    return SimpleNamespace(
        dendrite=SimpleNamespace(status_code=status_code, status_message=status_message),
        **fields,
    )


class FakeDendrite:
    """Answers store and retrieve synapses like a validator with an in-memory index."""

    def __init__(self, failing_hotkeys=(), tamper=False):
        self.index = {}
        self.failing_hotkeys = set(failing_hotkeys)
        self.tamper = tamper
        self.queries = []

    def query(self, axons, synapse, timeout=12, deserialize=True):
        self.queries.append((type(synapse).__name__, [a.hotkey for a in axons]))
        return [self._answer(axon, synapse) for axon in axons]

    def _answer(self, axon, synapse):
        if axon.hotkey in self.failing_hotkeys:
            return response(503, "Service unavailable", data_hash=None, encrypted_data=None)

        if type(synapse).__name__ == "StoreUser":
            encrypted_data = base64.b64decode(synapse.encrypted_data)
            data_hash = content_handle(encrypted_data)
            self.index[data_hash] = (synapse.encrypted_data, synapse.encryption_payload)
            return response(data_hash=data_hash)

        stored = self.index.get(synapse.data_hash)
        if stored is None:
            return response(404, "Not found", encrypted_data=None, encryption_payload=None)
        encrypted_data, encryption_payload = stored
        if self.tamper:
            raw = bytearray(base64.b64decode(encrypted_data))
            raw[0] ^= 0xFF
            encrypted_data = base64.b64encode(bytes(raw)).decode("utf-8")
        return response(encrypted_data=encrypted_data, encryption_payload=encryption_payload)


class TestSubnetStoreSelection(TestCase):
    def _store(self, metagraph, stake_limit=500):
        return SubnetStore(
            wallet=make_wallet(),
            dendrite=FakeDendrite(),
            metagraph=metagraph,
            stake_limit=stake_limit,
        )

    def test_trusted_nodes_ordered_by_stake(self):
        store = self._store(make_metagraph([1000, 600, 100, 2000]))
        nodes = store.select_nodes(2, method="", trusted_only=True)
        self.assertEqual(["hotkey-3", "hotkey-0"], [a.hotkey for a in nodes.trusted])
        self.assertEqual([], nodes.discovered)

    def test_trusted_only_without_enough_stake_fails(self):
        store = self._store(make_metagraph([100, 200]))
        with self.assertRaises(NodeSelectionError):
            store.select_nodes(1, trusted_only=True)

    def test_mixed_nodes_fill_from_discovered(self):
        store = self._store(make_metagraph([1000, 100, 300]))
        nodes = store.select_nodes(2, trusted_only=False)
        self.assertEqual(["hotkey-0"], [a.hotkey for a in nodes.trusted])
        self.assertEqual(["hotkey-2"], [a.hotkey for a in nodes.discovered])

    def test_non_serving_non_validator_and_excluded_nodes_skipped(self):
        metagraph = make_metagraph(
            [1000, 1000, 1000, 1000],
            permits=[True, False, True, True],
            serving=[False, True, True, True],
        )
        store = self._store(metagraph)
        nodes = store.select_nodes(1, exclude=["hotkey-2"], trusted_only=True)
        self.assertEqual(["hotkey-3"], [a.hotkey for a in nodes.all])

    def test_random_method_selects_eligible_nodes(self):
        store = self._store(make_metagraph([1000, 900, 800, 10]))
        nodes = store.select_nodes(3, method="random", trusted_only=True)
        self.assertEqual(
            {"hotkey-0", "hotkey-1", "hotkey-2"}, {a.hotkey for a in nodes.trusted}
        )

    def test_unknown_method_fails(self):
        store = self._store(make_metagraph([1000]))
        with self.assertRaises(NodeSelectionError):
            store.select_nodes(1, method="nearest")


class FlakySubtensor:
    """Fails the first ``failures`` metagraph syncs, then serves ``metagraph``."""

    def __init__(self, metagraph, failures=1):
        self._metagraph = metagraph
        self.failures = failures
        self.calls = 0

    def metagraph(self, netuid):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("websocket closed")
        return self._metagraph

    def close(self):
        pass


class TestSubnetStoreMetagraph(TestCase):
    def test_metagraph_failure_is_a_selection_error(self):
        store = SubnetStore(
            wallet=make_wallet(),
            subtensor=FlakySubtensor(make_metagraph([1000]), failures=1),
            dendrite=FakeDendrite(),
        )
        with self.assertRaises(NodeSelectionError) as ctx:
            store.select_nodes(1)
        self.assertIsInstance(ctx.exception.__cause__, ConnectionError)

    def test_fallback_retries_after_metagraph_failure(self):
        subtensor = FlakySubtensor(make_metagraph([1000]), failures=1)
        store = SubnetStore(
            wallet=make_wallet(), subtensor=subtensor, dendrite=FakeDendrite()
        )
        nodes, policy = select_with_fallback(store, 1)

        self.assertEqual(SELECTION_POLICIES[1], policy)
        self.assertEqual(["hotkey-0"], [a.hotkey for a in nodes.all])
        self.assertEqual(2, subtensor.calls)


class TestSubnetStoreTransfer(TestCase):
    def setUp(self):
        self.metagraph = make_metagraph([1000, 900])
        self.nodes = NodeSet(trusted=list(self.metagraph.axons))

    def test_put_then_get_round_trips_encrypted(self):
        dendrite = FakeDendrite()
        store = SubnetStore(wallet=make_wallet(), dendrite=dendrite, metagraph=self.metagraph)
        data = b"fragment bytes" * 10

        receipt = store.put(data, self.nodes)

        encrypted_data, _ = dendrite.index[receipt.data_hash]
        self.assertNotEqual(data, base64.b64decode(encrypted_data))
        self.assertEqual("hotkey-0", receipt.hotkey)
        self.assertEqual(data, store.get(receipt.data_hash, self.nodes))

    def test_put_skips_failing_nodes(self):
        dendrite = FakeDendrite(failing_hotkeys=["hotkey-0"])
        store = SubnetStore(wallet=make_wallet(), dendrite=dendrite, metagraph=self.metagraph)
        receipt = store.put(b"data", self.nodes)
        self.assertEqual("hotkey-1", receipt.hotkey)

    def test_put_fails_when_every_node_fails(self):
        dendrite = FakeDendrite(failing_hotkeys=["hotkey-0", "hotkey-1"])
        store = SubnetStore(wallet=make_wallet(), dendrite=dendrite, metagraph=self.metagraph)
        with self.assertRaises(RemoteStoreError) as ctx:
            store.put(b"data", self.nodes)
        self.assertIn("503", str(ctx.exception))

    def test_get_unknown_hash_fails(self):
        store = SubnetStore(wallet=make_wallet(), dendrite=FakeDendrite(), metagraph=self.metagraph)
        with self.assertRaises(RemoteStoreError):
            store.get("1234", self.nodes)

    def test_get_rejects_data_failing_hash_verification(self):
        dendrite = FakeDendrite()
        store = SubnetStore(
            wallet=make_wallet(), dendrite=dendrite, metagraph=self.metagraph, encrypt=False
        )
        receipt = store.put(b"plain fragment", self.nodes)
        dendrite.tamper = True

        with self.assertRaises(ProofVerificationError):
            store.get(receipt.data_hash, self.nodes, verify_proof=True)

        # Without the check the tampered bytes come back as they are.
        data = store.get(receipt.data_hash, self.nodes, verify_proof=False)
        self.assertNotEqual(b"plain fragment", data)
        self.assertEqual(len(b"plain fragment"), len(data))

    def test_unencrypted_store_round_trip(self):
        store = SubnetStore(
            wallet=make_wallet(), dendrite=FakeDendrite(), metagraph=self.metagraph, encrypt=False
        )
        receipt = store.put(b"plain fragment", self.nodes)
        self.assertEqual(content_handle(b"plain fragment"), receipt.data_hash)
        self.assertEqual(b"plain fragment", store.get(receipt.data_hash, self.nodes))

    def test_empty_node_set_rejected(self):
        store = SubnetStore(wallet=make_wallet(), dendrite=FakeDendrite(), metagraph=self.metagraph)
        with self.assertRaises(RemoteStoreError):
            store.put(b"data", NodeSet())
        with self.assertRaises(RemoteStoreError):
            store.get("1", NodeSet())
