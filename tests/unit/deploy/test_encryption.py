"""Unit tests for client-side envelope encryption."""

import base64
import io
from typing import Any

import pytest
from cryptography.exceptions import InvalidTag

from beandeploy.deploy.encryption import encrypt_stream, generate_key_pair


@pytest.fixture(scope="module")
def key_pair():
    return generate_key_pair()


def _encrypt(body: bytes, key_pair, chunk_size: int = 1024) -> tuple[bytes, dict]:
    sink = io.BytesIO()
    metadata = encrypt_stream(io.BytesIO(body), sink, key_pair, chunk_size)
    return sink.getvalue(), metadata


class TestEnvelopeEncryption:
    """Tests for encrypt_stream."""

    def test_metadata_describes_envelope(self, key_pair) -> None:
        """Metadata carries the wrapped key, IV, algorithms and length."""
        _, metadata = _encrypt(b"hello world", key_pair)

        assert metadata["x-amz-wrap-alg"] == "RSA-OAEP-SHA256"
        assert metadata["x-amz-cek-alg"] == "AES/GCM/NoPadding"
        assert metadata["x-amz-unencrypted-content-length"] == "11"
        assert len(base64.b64decode(metadata["x-amz-iv"])) == 12

    def test_fresh_data_key_per_object(self, key_pair) -> None:
        """Encrypting the same body twice yields different ciphertexts."""
        first, first_meta = _encrypt(b"same body", key_pair)
        second, second_meta = _encrypt(b"same body", key_pair)

        assert first != second
        assert first_meta["x-amz-key-v2"] != second_meta["x-amz-key-v2"]

    def test_tag_appended_to_ciphertext(self, key_pair) -> None:
        """The sink holds the ciphertext followed by the 16-byte GCM tag."""
        ciphertext, _ = _encrypt(b"x" * 100, key_pair)
        assert len(ciphertext) == 100 + 16

    def test_multi_chunk_body_decrypts(self, key_pair, decrypt_body: Any) -> None:
        """A body spanning many chunks decrypts to the original bytes."""
        body = bytes(range(256)) * 40
        ciphertext, metadata = _encrypt(body, key_pair, chunk_size=1000)

        assert metadata["x-amz-unencrypted-content-length"] == str(len(body))
        assert decrypt_body(ciphertext, metadata, key_pair) == body

    def test_source_read_in_bounded_chunks(self, key_pair) -> None:
        """No read asks the source for more than chunk_size bytes."""
        sizes: list[int] = []

        class RecordingSource(io.BytesIO):
            def read(self, size: int | None = -1) -> bytes:
                sizes.append(size)
                return super().read(size)

        sink = io.BytesIO()
        encrypt_stream(RecordingSource(b"a" * 5000), sink, key_pair, chunk_size=512)

        assert sizes
        assert all(size == 512 for size in sizes)

    def test_empty_body(self, key_pair, decrypt_body: Any) -> None:
        """An empty body still produces a tag and decrypts to nothing."""
        ciphertext, metadata = _encrypt(b"", key_pair)

        assert metadata["x-amz-unencrypted-content-length"] == "0"
        assert decrypt_body(ciphertext, metadata, key_pair) == b""

    def test_tampered_ciphertext_rejected(self, key_pair, decrypt_body: Any) -> None:
        """GCM authentication detects a modified body."""
        ciphertext, metadata = _encrypt(b"important", key_pair)
        tampered = bytes([ciphertext[0] ^ 0xFF]) + ciphertext[1:]

        with pytest.raises(InvalidTag):
            decrypt_body(tampered, metadata, key_pair)
