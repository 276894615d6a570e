import base64
import random

import pytest

from .schema import (
  NOTE,
  PREORDER,
  DocumentProperty,
  DocumentType,
  FillSize,
  FillType,
  PropertyType,
  SecurityLevel,
  document_id,
  get_document_type,
  random_document,
  random_value,
)


def make_document(document_type, rng=None, **kwargs):
  return random_document(
    document_type,
    contract_id="contract",
    owner_id="owner",
    entropy=b"\x01" * 32,
    created_at_ms=1_700_000_000_000,
    rng=rng or random.Random(1),
    **kwargs,
  )


class TestDocumentTypes:
  def test_preorder(self):
    assert PREORDER.required == ["saltedDomainHash"]
    assert PREORDER.security_level_requirement == SecurityLevel.HIGH

  def test_lookup(self):
    assert get_document_type("note") is NOTE

  def test_unknown_type(self):
    with pytest.raises(KeyError, match="preorder"):
      get_document_type("domain")

  def test_invalid_property_bounds(self):
    with pytest.raises(ValueError):
      DocumentProperty(PropertyType.STRING, min_length=10, max_length=5)
    with pytest.raises(ValueError):
      DocumentProperty(PropertyType.INTEGER, minimum=3, maximum=1)


class TestRandomDocument:
  def test_preorder_document(self):
    document = make_document(PREORDER)
    body = document.to_json()

    assert body["$type"] == "preorder"
    assert body["$dataContractId"] == "contract"
    assert body["$ownerId"] == "owner"
    assert body["$createdAt"] == 1_700_000_000_000
    assert body["$revision"] == 1
    assert len(base64.b64decode(body["saltedDomainHash"])) == 32

  def test_id_depends_on_entropy(self):
    first = document_id("contract", "owner", "preorder", b"\x01" * 32)
    second = document_id("contract", "owner", "preorder", b"\x02" * 32)
    assert first != second
    assert make_document(PREORDER).id == first

  def test_required_only(self):
    for seed in range(20):
      document = make_document(NOTE, rng=random.Random(seed), fill_type=FillType.REQUIRED_ONLY)
      assert set(document.properties) == {"message"}

  def test_fill_all(self):
    document = make_document(NOTE, fill_type=FillType.FILL_ALL)
    assert set(document.properties) == {"message", "tags", "priority"}

  def test_required_properties_always_filled(self):
    for seed in range(20):
      document = make_document(NOTE, rng=random.Random(seed))
      assert 1 <= len(document.properties["message"]) <= 256

  def test_same_seed_same_document(self):
    assert make_document(NOTE, rng=random.Random(3)) == make_document(NOTE, rng=random.Random(3))


class TestRandomValue:
  @pytest.mark.parametrize(
    "fill_size, expected",
    [(FillSize.MIN, 4), (FillSize.MAX, 8)],
  )
  def test_string_length_bounds(self, fill_size, expected):
    prop = DocumentProperty(PropertyType.STRING, min_length=4, max_length=8)
    assert len(random_value(prop, random.Random(0), fill_size)) == expected

  def test_integer_within_bounds(self):
    prop = DocumentProperty(PropertyType.INTEGER, minimum=0, maximum=10)
    rng = random.Random(0)
    assert all(0 <= random_value(prop, rng) <= 10 for _ in range(100))

  def test_boolean(self):
    prop = DocumentProperty(PropertyType.BOOLEAN)
    assert isinstance(random_value(prop, random.Random(0)), bool)

  def test_custom_type(self):
    document_type = DocumentType(
      name="score",
      properties={"value": DocumentProperty(PropertyType.NUMBER, required=True, minimum=1.0, maximum=2.0)},
    )
    document = make_document(document_type, fill_size=FillSize.MAX)
    assert document.properties == {"value": 2.0}
