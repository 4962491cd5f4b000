from dataclasses import dataclass

import bittensor as bt


class InvalidPrivateKeyError(ValueError):
    """Raised when private key material cannot be parsed."""


@dataclass
class AddressCheck:
    derived_address: str
    expected_address: str
    matches: bool


def _strip_hex_prefix(value: str) -> str:
    value = value.strip()
    if value[:2].lower() == "0x":
        return value[2:]
    return value


def derive_address(private_key: str) -> str:
    """
    Derives the SS58 address of a private key.

    A 32 byte key is treated as a keypair seed and a 64 byte key as an expanded
    sr25519 private key. A ``0x`` prefix is optional.

    Raises:
        InvalidPrivateKeyError: If the key is not hex or has the wrong length.
    """
    try:
        key_bytes = bytes.fromhex(_strip_hex_prefix(private_key))
    except (ValueError, AttributeError) as e:
        raise InvalidPrivateKeyError(f"private key is not valid hex: {e}") from e

    if len(key_bytes) == 32:
        keypair = bt.Keypair.create_from_seed("0x" + key_bytes.hex())
    elif len(key_bytes) == 64:
        keypair = bt.Keypair.create_from_private_key("0x" + key_bytes.hex())
    else:
        raise InvalidPrivateKeyError(
            f"private key must be 32 or 64 bytes, got {len(key_bytes)}"
        )
    return keypair.ss58_address


def normalize_address(address: str) -> str:
    """
    Returns the lower case hex public key behind an address.

    Accepts an SS58 address or a ``0x`` prefixed hex public key.

    Raises:
        ValueError: If the address is neither.
    """
    address = address.strip()
    if address[:2].lower() == "0x":
        public_key = bytes.fromhex(address[2:])
    else:
        public_key = bt.utils.ss58_address_to_bytes(address)
    return public_key.hex().lower()


def check_address(private_key: str, expected_address: str) -> AddressCheck:
    """
    Compares the address derived from ``private_key`` against ``expected_address``.

    Both sides are normalized to their public key so an SS58 address and a hex
    public key of the same account match. An expected address that cannot be
    decoded never matches.

    Raises:
        InvalidPrivateKeyError: If the private key cannot be parsed.
    """
    derived = derive_address(private_key)
    try:
        matches = normalize_address(derived) == normalize_address(expected_address)
    except ValueError as e:
        bt.logging.debug(f"could not decode expected address {expected_address}: {e}")
        matches = False
    return AddressCheck(
        derived_address=derived, expected_address=expected_address, matches=matches
    )
