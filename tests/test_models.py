import pytest

from sumsub_client.models import (
    FIXED_INFO_COUNTRY_FIELDS,
    build_applicant_payload,
    build_director_payload,
    build_document_metadata,
)


def _attrs(country: str) -> dict:
    return {
        "id": "user-1",
        "email": "jane@example.com",
        "phone": "+2348000000000",
        "firstName": "Jane",
        "lastName": "Doe",
        "dob": "1990-01-31",
        "country": country,
        "city": "Lagos",
        "street": "1 Marina",
        "state": "LA",
        "postCode": "101001",
        "tin": "12345678-0001",
    }


@pytest.mark.parametrize("country", ["NGA", "USA"])
def test_tin_injected_for_listed_countries(country):
    fixed = build_applicant_payload(_attrs(country))["fixedInfo"]
    assert fixed["tin"] == "12345678-0001"


@pytest.mark.parametrize("country", ["NGA", "USA"])
def test_listed_country_without_tin_omits_field(country):
    attrs = _attrs(country)
    del attrs["tin"]
    fixed = build_applicant_payload(attrs)["fixedInfo"]
    assert "tin" not in fixed
    assert fixed["country"] == country


@pytest.mark.parametrize("country", ["GBR", "DEU", "nga", ""])
def test_tin_absent_for_other_countries(country):
    assert "tin" not in build_applicant_payload(_attrs(country))["fixedInfo"]


def test_country_field_table():
    assert FIXED_INFO_COUNTRY_FIELDS == {"NGA": ("tin",), "USA": ("tin",)}


def test_full_applicant_payload_shape():
    body = build_applicant_payload(_attrs("GBR"))
    assert body == {
        "externalUserId": "user-1",
        "email": "jane@example.com",
        "phone": "+2348000000000",
        "fixedInfo": {
            "firstName": "Jane",
            "lastName": "Doe",
            "dob": "1990-01-31",
            "country": "GBR",
            "addresses": [
                {"country": "GBR", "town": "Lagos", "street": "1 Marina", "state": "LA", "postCode": "101001"}
            ],
        },
    }


def test_missing_optional_fields_are_dropped():
    body = build_applicant_payload({"id": 42, "firstName": "Solo"})
    assert body == {"externalUserId": "42", "fixedInfo": {"firstName": "Solo"}}


def test_external_user_id_required():
    with pytest.raises(ValueError):
        build_applicant_payload({"email": "x@y.z"})
    with pytest.raises(ValueError):
        build_director_payload({"id": ""})


def test_director_payload_is_individual():
    body = build_director_payload({"id": "d1", "firstName": "A", "lastName": "B", "country": "USA", "tin": "1"})
    assert body["type"] == "individual"
    assert body["fixedInfo"] == {"firstName": "A", "lastName": "B"}


def test_document_metadata_excludes_file_location():
    meta = build_document_metadata({"path": "/tmp/p.jpg", "fileName": "p.jpg", "idDocType": "PASSPORT", "country": "GBR"})
    assert meta == {"idDocType": "PASSPORT", "country": "GBR"}
