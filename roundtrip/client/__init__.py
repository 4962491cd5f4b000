from .config import DemoConfig
from .facade import (
    NodeSelectionError,
    NodeSet,
    ProofVerificationError,
    RemoteStore,
    RemoteStoreError,
    StoreReceipt,
)
from .identity import AddressCheck, InvalidPrivateKeyError, check_address
from .mock import MemoryStore
from .network import SubnetStore
from .pipeline import FragmentResult, RunResult, run_pipeline, run_roundtrip
from .selection import SELECTION_POLICIES, SelectionPolicy, select_with_fallback
