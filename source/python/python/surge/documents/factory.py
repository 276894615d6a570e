import random
from typing import Optional

from surge.load.errors import ConfigurationError, WorkItemBuildError
from surge.load.work import WorkItem

from .identity import SIGNING_KEY_TYPES, Identity, IdentityPublicKey, Purpose
from .schema import DocumentType, FillSize, FillType, random_document
from .signer import SimpleSigner

ENTROPY_SIZE = 32


def select_signing_key(identity: Identity, document_type: DocumentType) -> IdentityPublicKey:
  """
  Find the key used to sign documents of the given type.

  :raises ConfigurationError: If the identity has no suitable key
  """
  key = identity.first_public_key_matching(
    Purpose.AUTHENTICATION,
    {document_type.security_level_requirement},
    SIGNING_KEY_TYPES,
  )
  if key is None:
    raise ConfigurationError(
      "identity",
      identity.id,
      f"no public key matching security level {document_type.security_level_requirement.name} "
      f"for document type '{document_type.name}'",
    )
  # Fail early if the private half is missing
  identity.private_key(key.id)
  return key


class RandomDocumentFactory:
  """
  Builds signed random documents of one type.

  Usage:
      factory = RandomDocumentFactory(PREORDER, contract_id="...", identity=identity)
      item = factory.build(identity, created_at_ms, random.Random())
  """

  def __init__(
    self,
    document_type: DocumentType,
    contract_id: str,
    identity: Optional[Identity] = None,
    fill_type: FillType = FillType.FILL_IF_NOT_REQUIRED,
    fill_size: FillSize = FillSize.ANY,
  ):
    self.document_type = document_type
    self.contract_id = contract_id
    self.fill_type = fill_type
    self.fill_size = fill_size
    self._keys: dict[str, IdentityPublicKey] = {}

    if identity is not None:
      self._keys[identity.id] = select_signing_key(identity, document_type)

  def build(self, identity: Identity, created_at_ms: int, rng: random.Random) -> WorkItem:
    if identity is None:
      raise WorkItemBuildError("no identity to own the document", self.document_type.name)

    try:
      public_key = self._keys.get(identity.id)
      if public_key is None:
        public_key = self._keys[identity.id] = select_signing_key(identity, self.document_type)

      entropy = rng.randbytes(ENTROPY_SIZE)
      document = random_document(
        self.document_type,
        contract_id=self.contract_id,
        owner_id=identity.id,
        entropy=entropy,
        created_at_ms=created_at_ms,
        rng=rng,
        fill_type=self.fill_type,
        fill_size=self.fill_size,
      )

      signer = SimpleSigner()
      signer.add_key(public_key, identity.private_key(public_key.id))

      body = document.to_json()
      signature = signer.sign(public_key, body)
    except (ConfigurationError, KeyError, ValueError) as e:
      raise WorkItemBuildError(str(e), self.document_type.name, cause=e) from e

    return WorkItem(
      id=document.id,
      payload={
        "document": body,
        "entropy": entropy.hex(),
        "signaturePublicKeyId": public_key.id,
        "signature": signature,
      },
      entropy=entropy,
      signature=signature,
      created_at_ms=created_at_ms,
      metadata={"document_type": self.document_type.name},
    )
