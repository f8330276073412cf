"""
Tests for batch signing orchestration and proof bundles
"""

import dataclasses
import hashlib

import pytest

from merklebatch.core.batch import ProofBundle, SignedBatch, sign_batch, verify_batch, verify_bundle
from merklebatch.core.hashing import get_hasher
from merklebatch.core.tree import compute_merkle_root
from merklebatch.protocol.errors import EmptyBatchError, SignerFailure
from merklebatch.signing.ed25519 import Ed25519BatchSigner, Ed25519BatchVerifier


def demo_messages(n):
    return [f"message-{i}".encode() for i in range(n)]


class RecordingSigner:
    """Signer that records every digest it is asked to sign."""

    key_id = "recording"

    def __init__(self, signature=b"\x5a" * 100):
        self.calls = []
        self._signature = signature

    def sign(self, digest):
        self.calls.append(digest)
        return self._signature


class FailingSigner:
    key_id = "failing"

    def sign(self, digest):
        raise RuntimeError("HSM unavailable")


class AcceptAllVerifier:
    def verify(self, digest, signature, key_id):
        return True

    def get_public_key(self, key_id):
        return None


class TestSignBatch:
    def test_end_to_end_64_messages(self, hasher, signer, verifier):
        messages = demo_messages(64)
        batch = sign_batch(messages, hasher, signer)

        assert len(batch.bundles) == 64
        assert batch.height == 6
        for i, (message, bundle) in enumerate(zip(messages, batch.bundles)):
            assert bundle.index == i
            assert len(bundle.authentication_path) == 6
            assert verify_bundle(message, bundle, hasher, verifier, expected_root=batch.root)

    def test_per_message_overhead(self, hasher, signer):
        batch = sign_batch(demo_messages(64), hasher, signer)
        sig_len = len(batch.signature)
        assert sig_len == 64
        assert batch.per_message_overhead() == sig_len / 64 + 6 * 32
        assert batch.bundles[0].overhead_bytes() == sig_len / 64 + 6 * 32

    def test_unpacks_as_root_and_bundles(self, hasher, signer):
        root, bundles = sign_batch(demo_messages(3), hasher, signer)
        leaves = [hashlib.sha256(m).digest() for m in demo_messages(3)]
        assert root == compute_merkle_root(leaves, hasher)
        assert len(bundles) == 3

    def test_signer_sees_exactly_the_root(self, hasher):
        recorder = RecordingSigner()
        batch = sign_batch(demo_messages(5), hasher, recorder)
        assert recorder.calls == [batch.root]

    def test_shared_signature_and_root(self, hasher, signer):
        batch = sign_batch(demo_messages(7), hasher, signer)
        assert {b.signature for b in batch.bundles} == {batch.signature}
        assert {b.root for b in batch.bundles} == {batch.root}
        assert {b.key_id for b in batch.bundles} == {signer.key_id}
        assert {b.leaf_count for b in batch.bundles} == {7}

    def test_single_message(self, hasher, signer, verifier):
        batch = sign_batch([b"solo"], hasher, signer)
        assert batch.root == hashlib.sha256(b"solo").digest()
        assert batch.bundles[0].authentication_path == []
        assert verify_bundle(b"solo", batch.bundles[0], hasher, verifier)

    def test_duplicate_messages_are_distinct_positions(self, hasher, signer, verifier):
        messages = [b"dup", b"dup", b"dup"]
        batch = sign_batch(messages, hasher, signer)
        assert [b.index for b in batch.bundles] == [0, 1, 2]
        for b in batch.bundles:
            assert verify_bundle(b"dup", b, hasher, verifier)

    def test_none_hasher_defaults_to_sha256(self, signer):
        batch = sign_batch(demo_messages(4), None, signer)
        assert batch.hasher_name == "sha256"

    def test_parallel_workers_same_root(self, hasher):
        messages = demo_messages(300)
        serial = sign_batch(messages, hasher, RecordingSigner())
        parallel = sign_batch(messages, hasher, RecordingSigner(), workers=4)
        assert serial.root == parallel.root
        assert [b.authentication_path for b in serial.bundles] == [
            b.authentication_path for b in parallel.bundles
        ]

    def test_empty_batch_fails_before_signing(self, hasher):
        recorder = RecordingSigner()
        with pytest.raises(EmptyBatchError):
            sign_batch([], hasher, recorder)
        assert recorder.calls == []

    def test_signer_exception_becomes_signer_failure(self, hasher):
        with pytest.raises(SignerFailure) as excinfo:
            sign_batch(demo_messages(4), hasher, FailingSigner())
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    @pytest.mark.parametrize("bad", [b"", None, "not-bytes"])
    def test_invalid_signature_is_signer_failure(self, hasher, bad):
        with pytest.raises(SignerFailure):
            sign_batch(demo_messages(4), hasher, RecordingSigner(signature=bad))


class TestVerifyBundle:
    @pytest.fixture
    def signed(self, hasher, signer):
        messages = demo_messages(10)
        return messages, sign_batch(messages, hasher, signer)

    def test_wrong_message(self, hasher, verifier, signed):
        messages, batch = signed
        assert not verify_bundle(b"message-99", batch.bundles[3], hasher, verifier)

    def test_message_swapped_with_other_index(self, hasher, verifier, signed):
        messages, batch = signed
        assert not verify_bundle(messages[4], batch.bundles[3], hasher, verifier)

    def test_unknown_signing_key(self, hasher, signed):
        messages, batch = signed
        other = Ed25519BatchVerifier()
        other.add_from_signer(Ed25519BatchSigner.generate())
        assert not verify_bundle(messages[0], batch.bundles[0], hasher, other)

    def test_tampered_signature(self, hasher, verifier, signed):
        messages, batch = signed
        b = batch.bundles[2]
        bad_sig = bytes([b.signature[0] ^ 1]) + b.signature[1:]
        tampered = ProofBundle(b.index, b.authentication_path, bad_sig, b.root, b.key_id, b.leaf_count)
        assert not verify_bundle(messages[2], tampered, hasher, verifier)

    def test_forged_root_with_valid_path(self, hasher, signed):
        # A proof that is internally consistent for a different root still
        # needs a valid signature over that root.
        messages, batch = signed
        forged = sign_batch([b"evil-0", b"evil-1"], hasher, RecordingSigner())
        b = forged.bundles[0]
        victim = Ed25519BatchVerifier()
        assert not verify_bundle(b"evil-0", b, hasher, victim)
        assert verify_bundle(b"evil-0", b, hasher, AcceptAllVerifier())

    def test_expected_root_mismatch(self, hasher, verifier, signed):
        messages, batch = signed
        other_root = hashlib.sha256(b"other").digest()
        assert not verify_bundle(messages[0], batch.bundles[0], hasher, verifier, other_root)

    def test_non_bytes_message(self, hasher, verifier, signed):
        messages, batch = signed
        assert not verify_bundle("message-0", batch.bundles[0], hasher, verifier)

    def test_leaf_count_argument_overrides_bundle(self, hasher, signer, verifier):
        # In a batch of 3 the trailing leaf is paired with itself, so index 3
        # recomputes the same root. Only the real batch size rejects it.
        messages = demo_messages(3)
        batch = sign_batch(messages, hasher, signer)
        relabelled = dataclasses.replace(batch.bundles[2], index=3, leaf_count=4)

        assert verify_bundle(messages[2], relabelled, hasher, verifier)
        assert not verify_bundle(messages[2], relabelled, hasher, verifier, leaf_count=3)
        assert verify_bundle(messages[2], batch.bundles[2], hasher, verifier, leaf_count=3)


class TestVerifyBatch:
    def test_all_messages(self, hasher, signer, verifier):
        messages = demo_messages(12)
        batch = sign_batch(messages, hasher, signer)
        assert verify_batch(messages, batch, verifier)

    def test_reordered_messages_fail(self, hasher, signer, verifier):
        messages = demo_messages(4)
        batch = sign_batch(messages, hasher, signer)
        assert not verify_batch(messages[::-1], batch, verifier)

    def test_length_mismatch_fails(self, hasher, signer, verifier):
        messages = demo_messages(4)
        batch = sign_batch(messages, hasher, signer)
        assert not verify_batch(messages[:3], batch, verifier)

    def test_unknown_hasher_fails(self, hasher, signer, verifier):
        messages = demo_messages(2)
        batch = sign_batch(messages, hasher, signer)
        batch.hasher_name = "md5"
        assert not verify_batch(messages, batch, verifier)

    def test_blake2b_batch(self, signer, verifier):
        blake = get_hasher("blake2b-256")
        messages = demo_messages(5)
        batch = sign_batch(messages, blake, signer)
        assert verify_batch(messages, batch, verifier)

    def test_uses_batch_size_not_bundle_leaf_count(self, hasher, signer, verifier):
        messages = demo_messages(3)
        batch = sign_batch(messages, hasher, signer)
        batch.bundles[2] = dataclasses.replace(batch.bundles[2], index=3, leaf_count=4)
        assert not verify_batch(messages, batch, verifier)


class TestSerialization:
    def test_bundle_dict_round_trip(self, hasher, signer):
        batch = sign_batch(demo_messages(5), hasher, signer)
        bundle = batch.bundles[4]
        assert ProofBundle.from_dict(bundle.to_dict()) == bundle

    def test_batch_dict_round_trip(self, hasher, signer, verifier):
        messages = demo_messages(6)
        batch = sign_batch(messages, hasher, signer)
        restored = SignedBatch.from_dict(batch.to_dict())
        assert restored == batch
        assert verify_batch(messages, restored, verifier)

    def test_overhead_needs_batch_size(self):
        bundle = ProofBundle(0, [], b"sig", b"\x00" * 32)
        with pytest.raises(EmptyBatchError):
            bundle.overhead_bytes()
        assert bundle.overhead_bytes(3) == 1.0

    def test_batch_without_bundles_has_no_overhead(self, hasher, signer):
        doc = sign_batch(demo_messages(4), hasher, signer).to_dict()
        doc["bundles"] = []
        batch = SignedBatch.from_dict(doc)
        assert batch.size == 0
        with pytest.raises(EmptyBatchError):
            batch.per_message_overhead()
