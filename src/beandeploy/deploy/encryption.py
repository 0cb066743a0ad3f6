"""Client-side envelope encryption for uploaded artifacts.

Each process generates one RSA key pair. Every object body is encrypted with
a fresh AES-256-GCM data key, and the data key is wrapped with the RSA public
key (OAEP/SHA-256). The wrapped key and IV travel as object metadata; the
GCM tag is appended to the ciphertext.
"""

from __future__ import annotations

import base64
import os
from typing import BinaryIO

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

CONTENT_CIPHER = "AES/GCM/NoPadding"
KEY_WRAP_ALGORITHM = "RSA-OAEP-SHA256"
DATA_KEY_BYTES = 32
IV_BYTES = 12
CHUNK_SIZE = 1024 * 1024

META_WRAPPED_KEY = "x-amz-key-v2"
META_IV = "x-amz-iv"
META_CONTENT_CIPHER = "x-amz-cek-alg"
META_WRAP_ALGORITHM = "x-amz-wrap-alg"
META_PLAINTEXT_LENGTH = "x-amz-unencrypted-content-length"

OAEP_PADDING = padding.OAEP(
    mgf=padding.MGF1(algorithm=hashes.SHA256()),
    algorithm=hashes.SHA256(),
    label=None,
)


def generate_key_pair(key_size: int = 2048) -> RSAPrivateKey:
    """Generate an ephemeral RSA key pair for wrapping data keys."""
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


def encrypt_stream(
    source: BinaryIO,
    sink: BinaryIO,
    key_pair: RSAPrivateKey,
    chunk_size: int = CHUNK_SIZE,
) -> dict[str, str]:
    """Envelope-encrypt ``source`` into ``sink`` one chunk at a time.

    At most ``chunk_size`` bytes of plaintext are held in memory. The sink
    receives the ciphertext followed by the 16-byte GCM tag.

    Args:
        source: Readable binary stream with the object body
        sink: Writable binary stream for the ciphertext
        key_pair: RSA key pair whose public half wraps the data key
        chunk_size: Bytes read from ``source`` per iteration

    Returns:
        Object metadata (wrapped key, IV, algorithms, plaintext length)
    """
    data_key = os.urandom(DATA_KEY_BYTES)
    iv = os.urandom(IV_BYTES)
    encryptor = Cipher(algorithms.AES(data_key), modes.GCM(iv)).encryptor()

    length = 0
    while chunk := source.read(chunk_size):
        length += len(chunk)
        sink.write(encryptor.update(chunk))
    sink.write(encryptor.finalize())
    sink.write(encryptor.tag)

    wrapped_key = key_pair.public_key().encrypt(data_key, OAEP_PADDING)
    return {
        META_WRAPPED_KEY: base64.b64encode(wrapped_key).decode("ascii"),
        META_IV: base64.b64encode(iv).decode("ascii"),
        META_CONTENT_CIPHER: CONTENT_CIPHER,
        META_WRAP_ALGORITHM: KEY_WRAP_ALGORITHM,
        META_PLAINTEXT_LENGTH: str(length),
    }
