"""
Identity and key material used to own and sign documents.

Environment Variables:
- SURGE_IDENTITY_FILE: Path to a JSON file describing the identity

File format:
  {
    "id": "4EfA9Jrvv3nnCFdSf7fad59851iiTRZ6Wcu6YVJ4iSeF",
    "publicKeys": [
      {"id": 1, "purpose": "AUTHENTICATION", "securityLevel": "HIGH", "type": "ECDSA_SECP256K1"}
    ],
    "privateKeys": {"1": "<hex encoded private key>"}
  }
"""

import json
import os
import secrets
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from surge.load.errors import ConfigurationError

from .schema import SecurityLevel


class Purpose(str, Enum):
  AUTHENTICATION = "AUTHENTICATION"
  ENCRYPTION = "ENCRYPTION"
  DECRYPTION = "DECRYPTION"
  TRANSFER = "TRANSFER"


class KeyType(str, Enum):
  ECDSA_SECP256K1 = "ECDSA_SECP256K1"
  BLS12_381 = "BLS12_381"
  ECDSA_HASH160 = "ECDSA_HASH160"
  EDDSA_25519_HASH160 = "EDDSA_25519_HASH160"


SIGNING_KEY_TYPES = frozenset({KeyType.ECDSA_SECP256K1, KeyType.BLS12_381})


@dataclass(frozen=True)
class IdentityPublicKey:
  id: int
  purpose: Purpose
  security_level: SecurityLevel
  key_type: KeyType


@dataclass(frozen=True)
class Identity:
  id: str
  public_keys: tuple[IdentityPublicKey, ...] = ()
  private_keys: dict[int, bytes] = field(default_factory=dict)

  def first_public_key_matching(
    self,
    purpose: Purpose,
    security_levels: Iterable[SecurityLevel],
    key_types: Iterable[KeyType],
  ) -> Optional[IdentityPublicKey]:
    security_levels = set(security_levels)
    key_types = set(key_types)
    for key in self.public_keys:
      if key.purpose == purpose and key.security_level in security_levels and key.key_type in key_types:
        return key
    return None

  def private_key(self, key_id: int) -> bytes:
    try:
      return self.private_keys[key_id]
    except KeyError:
      raise ConfigurationError("private key", key_id, f"identity {self.id} has no private key for this public key")

  @classmethod
  def from_dict(cls, data: dict) -> "Identity":
    if not isinstance(data, dict):
      raise ConfigurationError("identity", type(data).__name__, "must be a JSON object")
    try:
      public_keys = tuple(
        IdentityPublicKey(
          id=int(key["id"]),
          purpose=Purpose(key["purpose"]),
          security_level=SecurityLevel[key["securityLevel"]],
          key_type=KeyType(key["type"]),
        )
        for key in data.get("publicKeys", [])
      )
      private_keys = {int(key_id): bytes.fromhex(value) for key_id, value in data.get("privateKeys", {}).items()}
      return cls(id=str(data["id"]), public_keys=public_keys, private_keys=private_keys)
    except (AttributeError, KeyError, ValueError, TypeError) as e:
      raise ConfigurationError("identity", data.get("id"), f"malformed ({e})")

  @classmethod
  def load(cls, path: str | Path) -> "Identity":
    """
    Load an identity from a JSON file.

    :param path: Path to the identity file
    :return: The identity
    :raises ConfigurationError: If the file is missing or malformed
    """
    path = Path(path)
    try:
      data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
      raise ConfigurationError("identity file", str(path), "not found")
    except OSError as e:
      raise ConfigurationError("identity file", str(path), f"cannot be read ({e.strerror or e})")
    except UnicodeDecodeError:
      raise ConfigurationError("identity file", str(path), "not UTF-8 text")
    except json.JSONDecodeError as e:
      raise ConfigurationError("identity file", str(path), f"invalid JSON ({e.msg})")
    return cls.from_dict(data)

  @classmethod
  def ephemeral(cls, security_level: SecurityLevel = SecurityLevel.HIGH) -> "Identity":
    """Create a throwaway identity with a single authentication key, for mock runs."""
    key = IdentityPublicKey(
      id=1,
      purpose=Purpose.AUTHENTICATION,
      security_level=security_level,
      key_type=KeyType.ECDSA_SECP256K1,
    )
    return cls(id=secrets.token_hex(32), public_keys=(key,), private_keys={key.id: secrets.token_bytes(32)})


def load_identity(path: Optional[str] = None) -> Optional[Identity]:
  """
  Load the identity from the given path or from SURGE_IDENTITY_FILE.

  :return: The identity, or None if no path is configured
  """
  path = path or os.environ.get("SURGE_IDENTITY_FILE")
  if not path:
    return None
  return Identity.load(path)
