from .client import (
    SDKVersion,
    ApiError,
    DecodingError,
    PendingRequest,
    SumsubAuth,
    SumsubClient,
    SumsubError,
    TransportError,
    TransportErrorKind,
    sign,
    stable_json,
)
from .config import SumsubSettings
from .models import (
    FIXED_INFO_COUNTRY_FIELDS,
    DocImage,
    DocumentImage,
    UploadedDocument,
    build_applicant_payload,
    build_director_payload,
    build_document_metadata,
)

__all__ = [
    "SDKVersion",
    "ApiError",
    "DecodingError",
    "PendingRequest",
    "SumsubAuth",
    "SumsubClient",
    "SumsubError",
    "SumsubSettings",
    "TransportError",
    "TransportErrorKind",
    "FIXED_INFO_COUNTRY_FIELDS",
    "DocImage",
    "DocumentImage",
    "UploadedDocument",
    "build_applicant_payload",
    "build_director_payload",
    "build_document_metadata",
    "sign",
    "stable_json",
]
