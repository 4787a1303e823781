# LegiScan API client: bill metadata and the text of every version
import base64
import binascii
import io
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import requests
from pdfminer.high_level import extract_text as pdf_extract_text

from cache import TTLCache
from errors import FetchError
from normalize import split_sections
from retry import RetryPolicy
from settings import DEFAULT_CACHE_TTL, LEGISCAN_URL, Settings
from versions import Bill, BillVersion, Section

logger = logging.getLogger(__name__)

# candidate fields, most specific first; payloads differ between endpoints and states
VERSION_NAME_FIELDS = ("type", "type_name", "name", "version")
VERSION_DATE_FIELDS = ("date", "text_date", "status_date", "last_action_date")
SPONSOR_FIELDS      = ("primary_sponsor", "sponsor", "author", "sponsor_name")


def first_present(record: Dict[str, Any], keys: Sequence[str], default: Any = None) -> Any:
    for k in keys:
        value = record.get(k)
        if value not in (None, "", [], {}):
            return value
    return default


def primary_sponsor(bill: Dict[str, Any]) -> Optional[str]:
    sponsors = bill.get("sponsors") or []
    if sponsors and isinstance(sponsors[0], dict):
        name = first_present(sponsors[0], ("name", "full_name", "last_name"))
        if name:
            return name
    value = first_present(bill, SPONSOR_FIELDS)
    if isinstance(value, dict):
        return first_present(value, ("name", "full_name"))
    return value


# pdf text

def extract_pdf_text(data: bytes) -> str:
    """Text of every page, in reading order, as laid out by pdfminer."""
    if not data:
        return ""
    try:
        text = pdf_extract_text(io.BytesIO(data)) or ""
    except Exception as e:
        logger.warning("unreadable pdf (%d bytes): %s", len(data), e)
        return ""
    text = text.replace("\f", "\n").replace("\r\n", "\n")
    text = "\n".join(ln.rstrip() for ln in text.split("\n"))
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def document_sections(doc: Dict[str, Any]) -> List[Section]:
    """Decode one getBillText document into sections."""
    mime = (doc.get("mime") or "").lower()
    try:
        data = base64.b64decode(doc.get("doc") or "", validate=False)
    except (binascii.Error, ValueError) as e:
        logger.warning("undecodable document %s: %s", doc.get("doc_id"), e)
        return []
    if "pdf" in mime:
        return split_sections(extract_pdf_text(data))
    text = data.decode("utf-8", errors="replace")
    if "html" in mime:
        # left as markup; the comparison view decides how to show it
        return [Section(id="full", title="Full Text", content=text)] if text.strip() else []
    return split_sections(text.replace("\r\n", "\n"))


class LegiScanClient:
    def __init__(self, api_key: str, base_url: str = LEGISCAN_URL,
                 session: Optional[requests.Session] = None, timeout: float = 60.0,
                 retry: Optional[RetryPolicy] = None, cache: Optional[TTLCache] = None):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.retry = retry or RetryPolicy()
        self.cache = cache if cache is not None else TTLCache(DEFAULT_CACHE_TTL)
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json", "User-Agent": "BillTracer/4"})

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "LegiScanClient":
        return cls(
            api_key=settings.legiscan_api_key,
            base_url=settings.legiscan_base_url,
            session=session,
            timeout=settings.request_timeout,
            retry=RetryPolicy(max_attempts=settings.max_attempts, base_delay=settings.backoff),
            cache=TTLCache(settings.cache_ttl),
        )

    def _get(self, op: str, ident: str) -> Dict[str, Any]:
        params = {"key": self.api_key, "op": op, "id": ident}
        r = self.session.get(self.base_url, params=params, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def _call(self, op: str, ident: str) -> Dict[str, Any]:
        if not self.api_key:
            raise FetchError("LEGISCAN_API_KEY is not set")
        try:
            payload = self.retry.call(self._get, op, ident)
        except requests.RequestException as e:
            raise FetchError(f"{op} {ident} failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"{op} {ident} returned invalid JSON") from e
        if payload.get("status") != "OK":
            alert = (payload.get("alert") or {}).get("message") or payload.get("status")
            raise FetchError(f"{op} {ident}: {alert}")
        return payload

    def get_bill(self, bill_id: str) -> Dict[str, Any]:
        key = ("bill", bill_id)
        hit = self.cache.get(key)
        if hit is not None:
            return hit
        bill = self._call("getBill", bill_id).get("bill") or {}
        self.cache.set(key, bill)
        return bill

    def get_bill_text(self, doc_id: str) -> Dict[str, Any]:
        key = ("text", doc_id)
        hit = self.cache.get(key)
        if hit is not None:
            return hit
        doc = self._call("getBillText", doc_id).get("text") or {}
        self.cache.set(key, doc)
        return doc

    def bill_record(self, bill_id: str, state: str) -> Bill:
        data = self.get_bill(bill_id)
        return Bill(
            id=str(bill_id),
            state=data.get("state") or state,
            number=data.get("bill_number") or "",
            title=data.get("title") or "",
            sponsor=primary_sponsor(data),
        )

    def fetch_versions(self, bill_id: str, state: str) -> List[BillVersion]:
        bill = self.get_bill(bill_id)
        if bill.get("state") and state and bill["state"].upper() != state.upper():
            logger.warning("bill %s belongs to %s, not %s", bill_id, bill["state"], state)
        versions = []
        for i, text in enumerate(bill.get("texts") or []):
            doc_id = str(text.get("doc_id", i))
            try:
                sections = document_sections(self.get_bill_text(doc_id))
            except FetchError as e:
                # keep the version; it shows up as empty content downstream
                logger.warning("text %s of bill %s unavailable: %s", doc_id, bill_id, e)
                sections = []
            versions.append(BillVersion(
                id=doc_id,
                name=first_present(text, VERSION_NAME_FIELDS, f"Version {i+1}"),
                status=first_present(text, ("status", "type"), ""),
                date=first_present(text, VERSION_DATE_FIELDS),
                sections=tuple(sections),
            ))
        return versions
