from dataclasses import dataclass
from typing import Optional

import bittensor as bt


@dataclass
class DemoConfig:
    """Settings of a single round trip run."""

    total_size: int = 1024  # 1 KiB source file
    fragment_size: int = 256  # 1 KiB = 4 * 256 B
    replicas: int = 1
    workdir: Optional[str] = None  # fresh temporary directory when unset
    private_key: Optional[str] = None
    expected_address: Optional[str] = None
    verify_proof: bool = True

    def __post_init__(self):
        if self.fragment_size <= 0:
            raise ValueError(f"fragment_size must be positive, got {self.fragment_size}")
        if self.total_size < 0:
            raise ValueError(f"total_size must be non-negative, got {self.total_size}")
        if self.replicas < 1:
            raise ValueError(f"replicas must be at least 1, got {self.replicas}")

    @classmethod
    def from_config(cls, config: "bt.config") -> "DemoConfig":
        """Builds the run settings from the ``demo`` and ``identity`` sections of a CLI config."""
        return cls(
            total_size=int(config.demo.total_size),
            fragment_size=int(config.demo.fragment_size),
            replicas=int(config.demo.replicas),
            workdir=config.demo.workdir or None,
            private_key=config.identity.private_key or None,
            expected_address=config.identity.expected_address or None,
            verify_proof=not config.demo.get("no_verify_proof", False),
        )
