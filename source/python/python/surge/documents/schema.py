"""
Document types and random document generation.

A document type is a named set of typed properties. Random documents fill
every required property and, depending on the fill type, optional ones too.
"""

import base64
import hashlib
import random
import string
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Optional


class PropertyType(str, Enum):
  STRING = "string"
  INTEGER = "integer"
  NUMBER = "number"
  BOOLEAN = "boolean"
  BYTES = "bytes"


class SecurityLevel(IntEnum):
  """Key security levels, lower values are stronger."""

  MASTER = 0
  CRITICAL = 1
  HIGH = 2
  MEDIUM = 3


class FillType(Enum):
  # Only required properties
  REQUIRED_ONLY = "required_only"

  # Required properties, plus a random subset of the optional ones
  FILL_IF_NOT_REQUIRED = "fill_if_not_required"

  # Every property
  FILL_ALL = "fill_all"


class FillSize(Enum):
  # Lengths drawn anywhere within the property bounds
  ANY = "any"

  # Lengths at the lower bound
  MIN = "min"

  # Lengths at the upper bound
  MAX = "max"


@dataclass(frozen=True)
class DocumentProperty:
  type: PropertyType
  required: bool = False
  min_length: int = 0
  max_length: int = 64
  minimum: Optional[float] = None
  maximum: Optional[float] = None

  def __post_init__(self):
    if self.min_length < 0 or self.max_length < self.min_length:
      raise ValueError(f"Invalid length bounds {self.min_length}..{self.max_length}")
    if self.minimum is not None and self.maximum is not None and self.maximum < self.minimum:
      raise ValueError(f"Invalid value bounds {self.minimum}..{self.maximum}")


@dataclass(frozen=True)
class DocumentType:
  name: str
  properties: dict[str, DocumentProperty] = field(default_factory=dict)
  security_level_requirement: SecurityLevel = SecurityLevel.HIGH

  @property
  def required(self) -> list[str]:
    return [name for name, prop in self.properties.items() if prop.required]


@dataclass(frozen=True)
class Document:
  id: str
  type_name: str
  contract_id: str
  owner_id: str
  created_at_ms: int
  revision: int
  properties: dict[str, Any]

  def to_json(self) -> dict:
    return {
      "$id": self.id,
      "$type": self.type_name,
      "$dataContractId": self.contract_id,
      "$ownerId": self.owner_id,
      "$createdAt": self.created_at_ms,
      "$revision": self.revision,
      **self.properties,
    }


def document_id(contract_id: str, owner_id: str, type_name: str, entropy: bytes) -> str:
  digest = hashlib.sha256()
  digest.update(contract_id.encode())
  digest.update(owner_id.encode())
  digest.update(type_name.encode())
  digest.update(entropy)
  return digest.hexdigest()


def random_document(
  document_type: DocumentType,
  contract_id: str,
  owner_id: str,
  entropy: bytes,
  created_at_ms: int,
  rng: random.Random,
  fill_type: FillType = FillType.FILL_IF_NOT_REQUIRED,
  fill_size: FillSize = FillSize.ANY,
) -> Document:
  """
  Generate a random document of the given type.

  :param document_type: Type describing the properties to fill
  :param contract_id: Identifier of the contract defining the type
  :param owner_id: Identity owning the document
  :param entropy: 32 random bytes, part of the document id
  :param created_at_ms: Creation timestamp (milliseconds since the epoch)
  :param rng: Random source
  :param fill_type: Which properties to fill
  :param fill_size: How long generated values are
  :return: A new document
  """
  properties: dict[str, Any] = {}
  for name, prop in document_type.properties.items():
    if not prop.required:
      if fill_type == FillType.REQUIRED_ONLY:
        continue
      if fill_type == FillType.FILL_IF_NOT_REQUIRED and rng.random() < 0.5:
        continue
    properties[name] = random_value(prop, rng, fill_size)

  return Document(
    id=document_id(contract_id, owner_id, document_type.name, entropy),
    type_name=document_type.name,
    contract_id=contract_id,
    owner_id=owner_id,
    created_at_ms=created_at_ms,
    revision=1,
    properties=properties,
  )


def random_value(prop: DocumentProperty, rng: random.Random, fill_size: FillSize = FillSize.ANY) -> Any:
  if prop.type == PropertyType.BOOLEAN:
    return rng.random() < 0.5

  if prop.type == PropertyType.INTEGER:
    low = int(prop.minimum) if prop.minimum is not None else 0
    high = int(prop.maximum) if prop.maximum is not None else 2**31 - 1
    return _pick(low, high, fill_size, rng.randint)

  if prop.type == PropertyType.NUMBER:
    low = prop.minimum if prop.minimum is not None else 0.0
    high = prop.maximum if prop.maximum is not None else 1.0e9
    return _pick(low, high, fill_size, rng.uniform)

  length = _pick(prop.min_length, prop.max_length, fill_size, rng.randint)
  if prop.type == PropertyType.BYTES:
    return base64.b64encode(rng.randbytes(length)).decode()

  return "".join(rng.choices(string.ascii_letters + string.digits, k=length))


def _pick(low, high, fill_size: FillSize, draw):
  if fill_size == FillSize.MIN:
    return low
  if fill_size == FillSize.MAX:
    return high
  return draw(low, high)


PREORDER = DocumentType(
  name="preorder",
  properties={
    "saltedDomainHash": DocumentProperty(PropertyType.BYTES, required=True, min_length=32, max_length=32),
  },
  security_level_requirement=SecurityLevel.HIGH,
)

NOTE = DocumentType(
  name="note",
  properties={
    "message": DocumentProperty(PropertyType.STRING, required=True, min_length=1, max_length=256),
    "tags": DocumentProperty(PropertyType.STRING, min_length=0, max_length=32),
    "priority": DocumentProperty(PropertyType.INTEGER, minimum=0, maximum=10),
  },
  security_level_requirement=SecurityLevel.MEDIUM,
)

DOCUMENT_TYPES: dict[str, DocumentType] = {
  PREORDER.name: PREORDER,
  NOTE.name: NOTE,
}


def get_document_type(name: str) -> DocumentType:
  try:
    return DOCUMENT_TYPES[name]
  except KeyError:
    raise KeyError(f"Unknown document type '{name}', expected one of: {', '.join(sorted(DOCUMENT_TYPES))}")
