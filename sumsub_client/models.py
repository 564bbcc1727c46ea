from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

# Extra attributes merged into fixedInfo for applicants declaring these countries.
FIXED_INFO_COUNTRY_FIELDS: Dict[str, Tuple[str, ...]] = {
    "NGA": ("tin",),
    "USA": ("tin",),
}

_DOCUMENT_FILE_KEYS = ("path", "fileName")


@dataclass
class UploadedDocument:
    image_id: Optional[str]
    body: str


@dataclass
class DocumentImage:
    content: bytes
    mime_type: Optional[str]


@dataclass
class DocImage:
    image_id: str
    id_doc_type: Optional[str]
    image: Optional[DocumentImage] = None


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def _require_external_id(attributes: Mapping[str, Any]) -> str:
    external_user_id = attributes.get("id")
    if not external_user_id:
        raise ValueError("attributes['id'] (externalUserId) is required")
    return str(external_user_id)


def build_director_payload(attributes: Mapping[str, Any]) -> Dict[str, Any]:
    return _compact({
        "externalUserId": _require_external_id(attributes),
        "email": attributes.get("email"),
        "phone": attributes.get("phone"),
        "fixedInfo": _compact({
            "firstName": attributes.get("firstName"),
            "lastName": attributes.get("lastName"),
        }),
        "type": "individual",
    })


def build_applicant_payload(attributes: Mapping[str, Any]) -> Dict[str, Any]:
    """Full individual applicant body.

    Country specific attributes listed in FIXED_INFO_COUNTRY_FIELDS are merged
    into fixedInfo when the declared country matches and the value is present.
    """
    country = attributes.get("country")
    fixed_info = _compact({
        "firstName": attributes.get("firstName"),
        "lastName": attributes.get("lastName"),
        "dob": attributes.get("dob"),
        "country": country,
    })
    address = _compact({
        "country": country,
        "town": attributes.get("city"),
        "street": attributes.get("street"),
        "state": attributes.get("state"),
        "postCode": attributes.get("postCode"),
    })
    if address:
        fixed_info["addresses"] = [address]

    extra_fields = FIXED_INFO_COUNTRY_FIELDS.get(country or "", ())
    fixed_info.update(_compact({name: attributes.get(name) for name in extra_fields}))

    return _compact({
        "externalUserId": _require_external_id(attributes),
        "email": attributes.get("email"),
        "phone": attributes.get("phone"),
        "fixedInfo": fixed_info,
    })


def build_document_metadata(attributes: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in attributes.items() if k not in _DOCUMENT_FILE_KEYS}
