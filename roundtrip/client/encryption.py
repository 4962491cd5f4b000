import os
import json
import base64
import typing
from functools import lru_cache

from Crypto.Cipher import AES
from nacl import pwhash, secret

NACL_SALT = b"\x13q\x83\xdf\xf1Z\t\xbc\x9c\x90\xb5Q\x879\xe9\xb1"


@lru_cache(maxsize=8)
def _derive_key(password_bytes: bytes) -> bytes:
    kdf = pwhash.argon2i.kdf
    return kdf(
        secret.SecretBox.KEY_SIZE,
        password_bytes,
        NACL_SALT,
        opslimit=pwhash.argon2i.OPSLIMIT_INTERACTIVE,
        memlimit=pwhash.argon2i.MEMLIMIT_INTERACTIVE,
    )


def wallet_box(wallet) -> secret.SecretBox:
    """
    Builds the secret box keyed by the wallet's coldkey public key.

    The key is derived with argon2i once per public key and reused for every
    fragment of a run.
    """
    password = wallet.coldkeypub.public_key.hex()
    return secret.SecretBox(_derive_key(bytes(password, "utf-8")))


def encrypt_data(data: bytes, wallet) -> typing.Tuple[bytes, str]:
    """
    Encrypts data with a fresh AES-GCM key and seals the AES parameters with the wallet.

    Args:
        data (bytes): Data to be encrypted.
        wallet (bt.wallet): Wallet whose coldkey public key seals the AES parameters.

    Returns:
        Tuple[bytes, str]: The AES encrypted data, and the sealed AES key, nonce and
        tag as a base64 string suitable for the ``encryption_payload`` synapse field.
    """
    aes_key = os.urandom(32)  # AES key for 256-bit encryption
    cipher = AES.new(aes_key, AES.MODE_GCM)
    nonce = cipher.nonce

    encrypted_data, tag = cipher.encrypt_and_digest(data)

    aes_info = {
        "aes_key": aes_key.hex(),
        "nonce": nonce.hex(),
        "tag": tag.hex(),
    }
    sealed = wallet_box(wallet).encrypt(json.dumps(aes_info).encode())
    return encrypted_data, base64.b64encode(bytes(sealed)).decode("utf-8")


def decrypt_data(encrypted_data: bytes, encryption_payload: str, wallet) -> bytes:
    """
    Reverses ``encrypt_data``.

    Raises:
        nacl.exceptions.CryptoError: If the payload was not sealed by this wallet.
        ValueError: If the AES tag does not authenticate the data.
    """
    aes_info_str = wallet_box(wallet).decrypt(base64.b64decode(encryption_payload))
    aes_info = json.loads(aes_info_str)

    aes_key = bytes.fromhex(aes_info["aes_key"])
    nonce = bytes.fromhex(aes_info["nonce"])
    tag = bytes.fromhex(aes_info["tag"])

    cipher = AES.new(aes_key, AES.MODE_GCM, nonce=nonce)
    return cipher.decrypt_and_verify(encrypted_data, tag)


def is_unencrypted_payload(encryption_payload) -> bool:
    return encryption_payload in (None, "", "{}")
