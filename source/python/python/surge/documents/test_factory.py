import random

import pytest

from surge.load.errors import ConfigurationError, WorkItemBuildError

from .factory import ENTROPY_SIZE, RandomDocumentFactory, select_signing_key
from .identity import Identity, IdentityPublicKey, KeyType, Purpose
from .schema import NOTE, PREORDER, SecurityLevel
from .signer import SimpleSigner


def identity_with(security_level, key_type=KeyType.ECDSA_SECP256K1, private=True):
  key = IdentityPublicKey(id=7, purpose=Purpose.AUTHENTICATION, security_level=security_level, key_type=key_type)
  return Identity(id="owner", public_keys=(key,), private_keys={7: b"k" * 32} if private else {})


class TestSelectSigningKey:
  def test_matching_key(self):
    assert select_signing_key(identity_with(SecurityLevel.HIGH), PREORDER).id == 7

  def test_security_level_must_match(self):
    with pytest.raises(ConfigurationError, match="HIGH"):
      select_signing_key(identity_with(SecurityLevel.MEDIUM), PREORDER)

  def test_key_type_must_sign(self):
    with pytest.raises(ConfigurationError):
      select_signing_key(identity_with(SecurityLevel.HIGH, KeyType.ECDSA_HASH160), PREORDER)

  def test_private_key_required(self):
    with pytest.raises(ConfigurationError):
      select_signing_key(identity_with(SecurityLevel.HIGH, private=False), PREORDER)


class TestRandomDocumentFactory:
  def test_rejects_unusable_identity_up_front(self):
    with pytest.raises(ConfigurationError):
      RandomDocumentFactory(NOTE, contract_id="contract", identity=identity_with(SecurityLevel.HIGH))

  def test_build(self):
    identity = identity_with(SecurityLevel.HIGH)
    factory = RandomDocumentFactory(PREORDER, contract_id="contract", identity=identity)

    item = factory.build(identity, 1_700_000_000_000, random.Random(5))

    assert len(item.entropy) == ENTROPY_SIZE
    assert item.created_at_ms == 1_700_000_000_000
    assert item.metadata == {"document_type": "preorder"}
    assert item.payload["document"]["$id"] == item.id
    assert item.payload["entropy"] == item.entropy.hex()
    assert item.payload["signaturePublicKeyId"] == 7
    assert item.payload["signature"] == item.signature

    signer = SimpleSigner()
    signer.add_key(identity.public_keys[0], identity.private_key(7))
    assert signer.verify(identity.public_keys[0], item.payload["document"], item.signature)

  def test_each_item_is_unique(self):
    identity = identity_with(SecurityLevel.HIGH)
    factory = RandomDocumentFactory(PREORDER, contract_id="contract", identity=identity)
    rng = random.Random(1)
    ids = {factory.build(identity, 0, rng).id for _ in range(50)}
    assert len(ids) == 50

  def test_missing_identity(self):
    factory = RandomDocumentFactory(PREORDER, contract_id="contract")
    with pytest.raises(WorkItemBuildError):
      factory.build(None, 0, random.Random())

  def test_identity_without_matching_key(self):
    factory = RandomDocumentFactory(PREORDER, contract_id="contract")
    with pytest.raises(WorkItemBuildError) as info:
      factory.build(identity_with(SecurityLevel.MEDIUM), 0, random.Random())
    assert isinstance(info.value.cause, ConfigurationError)


class TestSimpleSigner:
  def test_tampered_payload_does_not_verify(self):
    identity = identity_with(SecurityLevel.HIGH)
    key = identity.public_keys[0]
    signer = SimpleSigner()
    signer.add_key(key, identity.private_key(7))

    signature = signer.sign(key, {"a": 1, "b": 2})
    assert signer.verify(key, {"b": 2, "a": 1}, signature)
    assert not signer.verify(key, {"a": 2, "b": 2}, signature)

  def test_unknown_key(self):
    with pytest.raises(KeyError):
      SimpleSigner().sign(identity_with(SecurityLevel.HIGH).public_keys[0], {})
