from .factory import RandomDocumentFactory, select_signing_key
from .identity import Identity, IdentityPublicKey, KeyType, Purpose, load_identity
from .schema import (
  DOCUMENT_TYPES,
  NOTE,
  PREORDER,
  Document,
  DocumentProperty,
  DocumentType,
  FillSize,
  FillType,
  PropertyType,
  SecurityLevel,
  get_document_type,
  random_document,
)
from .signer import SimpleSigner
from .submitters import (
  DEFAULT_SERVICE_URL,
  HttpDocumentSubmitter,
  HttpSubmitterSettings,
  MockSubmitter,
  MockSubmitterConfig,
  get_service_url,
)

__all__ = [
  "RandomDocumentFactory",
  "select_signing_key",
  "Identity",
  "IdentityPublicKey",
  "KeyType",
  "Purpose",
  "load_identity",
  "DOCUMENT_TYPES",
  "NOTE",
  "PREORDER",
  "Document",
  "DocumentProperty",
  "DocumentType",
  "FillSize",
  "FillType",
  "PropertyType",
  "SecurityLevel",
  "get_document_type",
  "random_document",
  "SimpleSigner",
  "DEFAULT_SERVICE_URL",
  "HttpDocumentSubmitter",
  "HttpSubmitterSettings",
  "MockSubmitter",
  "MockSubmitterConfig",
  "get_service_url",
]
