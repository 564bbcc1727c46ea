from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, MutableMapping, Optional, Union
from urllib.parse import quote

import httpx

from .config import SumsubSettings
from .models import (
    DocImage,
    DocumentImage,
    UploadedDocument,
    build_applicant_payload,
    build_director_payload,
    build_document_metadata,
)

SDKVersion = "0.1.0"
USER_AGENT = f"sumsub-python-client/{SDKVersion}"

HEADER_APP_TOKEN = "X-App-Token"
HEADER_SIGNATURE = "X-App-Access-Sig"
HEADER_TIMESTAMP = "X-App-Access-Ts"

logger = logging.getLogger(__name__)

Body = Union[bytes, bytearray, str, Iterable[bytes], None]


class SumsubError(Exception):
    pass


class TransportErrorKind:
    TIMEOUT = "TIMEOUT"
    CONNECT = "CONNECT"
    NETWORK = "NETWORK"


class TransportError(SumsubError):
    def __init__(self, kind: str, method: str, path: str, message: str):
        super().__init__(f"{method} {path}: {kind.lower()} error: {message}")
        self.kind = kind
        self.method = method
        self.path = path


class DecodingError(SumsubError):
    def __init__(self, message: str, status_code: int, body: bytes = b""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ApiError(SumsubError):
    def __init__(
        self,
        status_code: int,
        error_code: Optional[Any],
        message: str,
        correlation_id: Optional[str] = None,
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.correlation_id = correlation_id
        self.details = details


def sign(secret_key: Union[str, bytes], timestamp: int, method: str, path_with_query: str, body: Body = b"") -> str:
    """HMAC-SHA256 hex digest over ``ts + METHOD + path_with_query + body``.

    ``body`` may be raw bytes, text (UTF-8) or an iterable of byte chunks such
    as a multipart stream; chunks are fed to the MAC as they are produced.
    """
    key = secret_key.encode("utf-8") if isinstance(secret_key, str) else secret_key
    mac = hmac.new(key, f"{int(timestamp)}{method.upper()}{path_with_query}".encode("utf-8"), hashlib.sha256)
    if isinstance(body, (bytes, bytearray)):
        mac.update(bytes(body))
    elif isinstance(body, str):
        mac.update(body.encode("utf-8"))
    elif body is not None:
        for chunk in body:
            mac.update(chunk)
    return mac.hexdigest()


class SumsubAuth:
    def __init__(self, app_token: str, secret_key: str, clock: Callable[[], float] = time.time):
        self.app_token = app_token
        self._secret_key = secret_key
        self._clock = clock

    def apply(self, headers: MutableMapping[str, str], method: str, path_with_query: str, body: Body) -> int:
        if not self.app_token or not self._secret_key:
            raise ValueError("app_token and secret_key are required for sumsub auth")
        ts = int(self._clock())
        headers[HEADER_APP_TOKEN] = self.app_token
        headers[HEADER_SIGNATURE] = sign(self._secret_key, ts, method, path_with_query, body)
        headers[HEADER_TIMESTAMP] = str(ts)
        return ts


@dataclass
class PendingRequest:
    method: str
    path_with_query: str
    content: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    data: Optional[Dict[str, str]] = None
    files: Optional[Dict[str, Any]] = None


class SumsubClient:
    def __init__(
        self,
        base_url: str,
        auth: SumsubAuth,
        timeout_seconds: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
        raise_for_status: bool = False,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self.timeout_seconds = timeout_seconds
        self.headers = headers or {}
        self.raise_for_status = raise_for_status
        self.http = httpx.Client(timeout=self.timeout_seconds)

    @classmethod
    def from_settings(cls, settings: SumsubSettings, clock: Callable[[], float] = time.time) -> "SumsubClient":
        return cls(
            settings.base_url,
            SumsubAuth(settings.app_token, settings.secret_key.get_secret_value(), clock=clock),
            timeout_seconds=settings.timeout_seconds,
            raise_for_status=settings.raise_for_status,
        )

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "SumsubClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def dispatch(self, pending: PendingRequest) -> httpx.Response:
        method = pending.method.upper()
        headers: Dict[str, str] = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            **self.headers,
            **pending.headers,
        }
        request = self.http.build_request(
            method,
            self.base_url + pending.path_with_query,
            content=pending.content or None,
            data=pending.data,
            files=pending.files,
            headers=headers,
        )
        # Sign the path and stream httpx is about to send; multipart boundaries are fixed at build time.
        path = self._wire_path(request)
        try:
            self.auth.apply(request.headers, method, path, request.stream)
        except OSError as exc:
            raise self._transport_error(TransportErrorKind.NETWORK, method, path, exc) from exc
        started = time.monotonic()
        try:
            resp = self.http.send(request)
        except httpx.TimeoutException as exc:
            raise self._transport_error(TransportErrorKind.TIMEOUT, method, path, exc) from exc
        except httpx.ConnectError as exc:
            raise self._transport_error(TransportErrorKind.CONNECT, method, path, exc) from exc
        except httpx.TransportError as exc:
            raise self._transport_error(TransportErrorKind.NETWORK, method, path, exc) from exc
        logger.debug(
            "sumsub %s %s -> %s in %.0fms",
            method,
            path,
            resp.status_code,
            (time.monotonic() - started) * 1000,
        )
        return resp

    def create_applicant(self, attributes: Mapping[str, Any], level_name: str) -> str:
        body = build_applicant_payload(attributes)
        return self._create(body, level_name)

    def createApplicant(self, attributes: Mapping[str, Any], level_name: str) -> str:
        return self.create_applicant(attributes, level_name)

    def create_director(self, attributes: Mapping[str, Any], level_name: str) -> str:
        body = build_director_payload(attributes)
        return self._create(body, level_name)

    def createDirector(self, attributes: Mapping[str, Any], level_name: str) -> str:
        return self.create_director(attributes, level_name)

    def update_company_info(self, attributes: Mapping[str, Any], applicant_id: str) -> Dict[str, Any]:
        path = f"/resources/applicants/{_segment(applicant_id, 'applicant_id')}/info/companyInfo"
        return self._json_object(self.dispatch(_json_request("PATCH", path, dict(attributes))))

    def updateCompanyInfo(self, attributes: Mapping[str, Any], applicant_id: str) -> Dict[str, Any]:
        return self.update_company_info(attributes, applicant_id)

    def get_company_data(self, applicant_id: str) -> Dict[str, Any]:
        path = f"/resources/checks/latest?applicantId={_segment(applicant_id, 'applicant_id')}&type=COMPANY"
        return self._json_object(self.dispatch(PendingRequest("GET", path)))

    def getCompanyData(self, applicant_id: str) -> Dict[str, Any]:
        return self.get_company_data(applicant_id)

    def check_applicant(self, applicant_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        path = f"/resources/applicants/{_segment(applicant_id, 'applicant_id')}/status/pending"
        if reason:
            path += f"?reason={quote(reason, safe='')}"
        return self._json_object(self.dispatch(PendingRequest("POST", path)))

    def checkApplicant(self, applicant_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        return self.check_applicant(applicant_id, reason)

    def reset_verification(self, applicant_id: str, step_type: str) -> Dict[str, Any]:
        path = f"/resources/applicants/{_segment(applicant_id, 'applicant_id')}/resetStep/{_segment(step_type, 'step_type')}"
        return self._json_object(self.dispatch(PendingRequest("POST", path)))

    def resetVerification(self, applicant_id: str, step_type: str) -> Dict[str, Any]:
        return self.reset_verification(applicant_id, step_type)

    def reset_applicant(self, applicant_id: str) -> Dict[str, Any]:
        path = f"/resources/applicants/{_segment(applicant_id, 'applicant_id')}/reset"
        return self._json_object(self.dispatch(PendingRequest("POST", path)))

    def resetApplicant(self, applicant_id: str) -> Dict[str, Any]:
        return self.reset_applicant(applicant_id)

    def add_document(self, applicant_id: str, attributes: Mapping[str, Any]) -> UploadedDocument:
        file_path = attributes.get("path")
        if not file_path:
            raise ValueError("attributes['path'] is required for document upload")
        path = f"/resources/applicants/{_segment(applicant_id, 'applicant_id')}/info/idDoc"
        metadata = stable_json(build_document_metadata(attributes))
        file_name = attributes.get("fileName") or str(file_path).replace("\\", "/").rsplit("/", 1)[-1]
        with open(file_path, "rb") as fh:
            pending = PendingRequest(
                "POST",
                path,
                headers={"X-Return-Doc-Warnings": "true"},
                data={"metadata": metadata},
                files={"content": (file_name, fh)},
            )
            resp = self.dispatch(pending)
        self._check_status(resp)
        return UploadedDocument(image_id=resp.headers.get("X-Image-Id"), body=resp.text)

    def addDocument(self, applicant_id: str, attributes: Mapping[str, Any]) -> UploadedDocument:
        return self.add_document(applicant_id, attributes)

    def get_applicant_status(self, applicant_id: str) -> Union[List[Any], Dict[str, Any]]:
        path = f"/resources/applicants/{_segment(applicant_id, 'applicant_id')}/requiredIdDocsStatus"
        resp = self.dispatch(PendingRequest("GET", path))
        data = self._json(resp)
        if not isinstance(data, (list, dict)):
            raise self._decoding_error(resp, "expected a JSON array or object")
        return data

    def getApplicantStatus(self, applicant_id: str) -> Union[List[Any], Dict[str, Any]]:
        return self.get_applicant_status(applicant_id)

    def get_applicant_status_sdk(self, applicant_id: str) -> bytes:
        path = f"/resources/applicants/{_segment(applicant_id, 'applicant_id')}/status"
        resp = self.dispatch(PendingRequest("GET", path))
        self._check_status(resp)
        return resp.content

    def getApplicantStatusSDK(self, applicant_id: str) -> bytes:
        return self.get_applicant_status_sdk(applicant_id)

    def get_access_token(self, user_id: str, level_name: str) -> Dict[str, Any]:
        path = (
            f"/resources/accessTokens?userId={_segment(user_id, 'user_id')}"
            f"&levelName={_segment(level_name, 'level_name')}"
        )
        return self._json_object(self.dispatch(PendingRequest("POST", path)))

    def getAccessToken(self, user_id: str, level_name: str) -> Dict[str, Any]:
        return self.get_access_token(user_id, level_name)

    def get_applicant_data_by_applicant_id(self, applicant_id: str) -> Dict[str, Any]:
        path = f"/resources/applicants/{_segment(applicant_id, 'applicant_id')}/one"
        return self._json_object(self.dispatch(PendingRequest("GET", path)))

    def getApplicantDataByApplicantId(self, applicant_id: str) -> Dict[str, Any]:
        return self.get_applicant_data_by_applicant_id(applicant_id)

    def get_applicant_data_by_user_id(self, user_id: str) -> Dict[str, Any]:
        path = f"/resources/applicants/-;externalUserId={_segment(user_id, 'user_id')}/one"
        return self._json_object(self.dispatch(PendingRequest("GET", path)))

    def getApplicantDataByUserId(self, user_id: str) -> Dict[str, Any]:
        return self.get_applicant_data_by_user_id(user_id)

    def get_document_image(self, inspection_id: str, image_id: str) -> DocumentImage:
        path = (
            f"/resources/inspections/{_segment(inspection_id, 'inspection_id')}"
            f"/resources/{_segment(image_id, 'image_id')}"
        )
        resp = self.dispatch(PendingRequest("GET", path))
        self._check_status(resp)
        return DocumentImage(content=resp.content, mime_type=resp.headers.get("Content-Type"))

    def getDocumentImage(self, inspection_id: str, image_id: str) -> DocumentImage:
        return self.get_document_image(inspection_id, image_id)

    def get_applicant_doc_images(
        self,
        applicant_id: str,
        inspection_id: Optional[str] = None,
        include_content: bool = False,
    ) -> Dict[str, DocImage]:
        if include_content and not inspection_id:
            raise ValueError("inspection_id is required when include_content is set")
        status = self.get_applicant_status(applicant_id)
        docs = status.values() if isinstance(status, dict) else status
        images: Dict[str, DocImage] = {}
        for doc in docs:
            if not isinstance(doc, dict):
                continue
            for raw_id in doc.get("imageIds") or []:
                image_id = str(raw_id)
                entry = DocImage(image_id=image_id, id_doc_type=doc.get("idDocType"))
                if include_content:
                    entry.image = self.get_document_image(inspection_id, image_id)
                images[image_id] = entry
        return images

    def getApplicantDocImages(
        self,
        applicant_id: str,
        inspection_id: Optional[str] = None,
        include_content: bool = False,
    ) -> Dict[str, DocImage]:
        return self.get_applicant_doc_images(applicant_id, inspection_id, include_content)

    def get_verification_link(self, user_id: str, level_name: str, expiry_seconds: int) -> Dict[str, Any]:
        if int(expiry_seconds) <= 0:
            raise ValueError("expiry_seconds must be positive")
        path = (
            f"/resources/sdkIntegrations/levels/{_segment(level_name, 'level_name')}/websdkLink"
            f"?ttlInSecs={int(expiry_seconds)}&externalUserId={_segment(user_id, 'user_id')}"
        )
        return self._json_object(self.dispatch(PendingRequest("POST", path)))

    def getVerificationLink(self, user_id: str, level_name: str, expiry_seconds: int) -> Dict[str, Any]:
        return self.get_verification_link(user_id, level_name, expiry_seconds)

    def _create(self, body: Dict[str, Any], level_name: str) -> str:
        path = f"/resources/applicants?levelName={_segment(level_name, 'level_name')}"
        resp = self.dispatch(_json_request("POST", path, body))
        if not resp.is_success:
            raise self._to_error(resp)
        applicant_id = self._json_object(resp).get("id")
        if isinstance(applicant_id, str) and applicant_id:
            return applicant_id
        raise self._decoding_error(resp, "applicant id missing from response")

    def _wire_path(self, request: httpx.Request) -> str:
        prefix = httpx.URL(self.base_url).raw_path.rstrip(b"/")
        raw = request.url.raw_path
        if prefix and raw.startswith(prefix):
            raw = raw[len(prefix):]
        return raw.decode("ascii")

    def _check_status(self, resp: httpx.Response) -> None:
        if self.raise_for_status and not resp.is_success:
            raise self._to_error(resp)

    def _json(self, resp: httpx.Response) -> Any:
        self._check_status(resp)
        if not resp.content:
            return {}
        try:
            return json.loads(resp.content)
        except ValueError as exc:
            raise self._decoding_error(resp, f"invalid JSON: {exc}") from exc

    def _json_object(self, resp: httpx.Response) -> Dict[str, Any]:
        data = self._json(resp)
        if not isinstance(data, dict):
            raise self._decoding_error(resp, "expected a JSON object")
        return data

    def _decoding_error(self, resp: httpx.Response, message: str) -> DecodingError:
        logger.warning("sumsub %s %s: %s (HTTP %s)", resp.request.method, resp.request.url.path, message, resp.status_code)
        return DecodingError(message, resp.status_code, resp.content)

    def _transport_error(self, kind: str, method: str, path: str, exc: Exception) -> TransportError:
        logger.warning("sumsub %s %s failed: %s", method, path, kind)
        return TransportError(kind, method, path, str(exc) or exc.__class__.__name__)

    def _to_error(self, resp: httpx.Response) -> ApiError:
        try:
            parsed = resp.json()
        except ValueError:
            return ApiError(resp.status_code, None, resp.text or f"HTTP {resp.status_code}")
        if not isinstance(parsed, dict):
            return ApiError(resp.status_code, None, f"HTTP {resp.status_code}", details=parsed)
        return ApiError(
            status_code=resp.status_code,
            error_code=parsed.get("errorCode") or parsed.get("code"),
            message=parsed.get("description") or parsed.get("errorName") or f"HTTP {resp.status_code}",
            correlation_id=parsed.get("correlationId"),
            details=parsed,
        )


def stable_json(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _json_request(method: str, path_with_query: str, body: Any) -> PendingRequest:
    return PendingRequest(
        method,
        path_with_query,
        content=stable_json(body).encode("utf-8"),
        headers={"Content-Type": "application/json"},
    )


def _segment(value: Any, name: str) -> str:
    if value is None or str(value) == "":
        raise ValueError(f"{name} is required")
    return quote(str(value), safe="")
