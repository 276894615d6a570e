import hashlib
import hmac
import json

from .identity import IdentityPublicKey


def canonical_json(data: dict) -> bytes:
  return json.dumps(data, sort_keys=True, separators=(",", ":")).encode()


class SimpleSigner:
  """Signs payloads with the private keys it was given, keyed by public key id."""

  def __init__(self):
    self._keys: dict[int, bytes] = {}

  def add_key(self, public_key: IdentityPublicKey, private_key: bytes) -> None:
    self._keys[public_key.id] = private_key

  def sign(self, public_key: IdentityPublicKey, payload: dict) -> str:
    try:
      private_key = self._keys[public_key.id]
    except KeyError:
      raise KeyError(f"No private key for public key {public_key.id}")
    return hmac.new(private_key, canonical_json(payload), hashlib.sha256).hexdigest()

  def verify(self, public_key: IdentityPublicKey, payload: dict, signature: str) -> bool:
    return hmac.compare_digest(self.sign(public_key, payload), signature)
