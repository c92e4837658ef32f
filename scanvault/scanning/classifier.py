"""Map raw scanned payloads to a content type and a display value.

Patterns are tried in a fixed priority order and the first match wins:
URL, EMAIL, PHONE, WIFI_CREDENTIAL, then PLAIN_TEXT as the catch-all.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .records import ContentType

CUSTOM_SCHEMES = frozenset(
    {
        "ftp",
        "ftps",
        "sftp",
        "ws",
        "wss",
        "rtsp",
        "market",
        "geo",
        "maps",
        "sms",
        "smsto",
        "mms",
        "intent",
        "otpauth",
        "upi",
        "bitcoin",
        "ethereum",
        "whatsapp",
        "tg",
        "skype",
        "spotify",
        "zoommtg",
        "fb",
        "twitter",
    }
)

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):(.+)$", re.DOTALL)
_EMAIL_RE = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~\-]+@[A-Za-z0-9](?:[A-Za-z0-9\-]*[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9\-]*[A-Za-z0-9])?)+$"
)
_PHONE_RE = re.compile(r"^\+?[0-9\s().\-/]+$")
_WIFI_FIELD_RE = re.compile(r"(?:\\.|[^;\\]|\\$)+", re.DOTALL)

PHONE_MIN_DIGITS = 7
PHONE_MAX_DIGITS = 15


@dataclass(frozen=True)
class Classification:
    content_type: ContentType
    display_value: str


@dataclass(frozen=True)
class WifiCredential:
    ssid: str
    security: str | None = None
    password: str | None = None
    hidden: bool = False


def _coerce(raw_payload: object) -> str:
    if isinstance(raw_payload, str):
        return raw_payload
    if isinstance(raw_payload, (bytes, bytearray)):
        return bytes(raw_payload).decode("utf-8", errors="replace")
    if raw_payload is None:
        return ""
    return str(raw_payload)


def _match_url(text: str) -> str | None:
    match = _SCHEME_RE.match(text)
    if not match:
        return None
    scheme, rest = match.group(1).lower(), match.group(2)
    if scheme in ("http", "https"):
        if not rest.startswith("//") or len(rest) <= 2:
            return None
    elif scheme not in CUSTOM_SCHEMES:
        return None
    return f"{scheme}:{rest}"


def _match_email(text: str) -> str | None:
    if text[:7].lower() == "mailto:":
        address = text[7:].split("?", 1)[0]
        return address.strip()
    if _EMAIL_RE.match(text):
        return text
    return None


def _match_phone(text: str) -> str | None:
    if text[:4].lower() == "tel:":
        return text[4:].strip()
    if not _PHONE_RE.match(text):
        return None
    digits = sum(1 for char in text if char.isdigit())
    if PHONE_MIN_DIGITS <= digits <= PHONE_MAX_DIGITS:
        return text
    return None


def _unescape(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
    return re.sub(r"\\(.)", r"\1", value)


def _wifi_fields(text: str) -> dict[str, str] | None:
    if text[:5].upper() != "WIFI:":
        return None
    fields: dict[str, str] = {}
    for chunk in _WIFI_FIELD_RE.findall(text[5:]):
        key, sep, value = chunk.partition(":")
        if not sep:
            continue
        fields.setdefault(key.strip().upper(), value)
    if "S" not in fields or not ({"T", "P"} & fields.keys()):
        return None
    return fields


def parse_wifi(raw_payload: object) -> WifiCredential | None:
    """Decode a ``WIFI:`` payload into its fields, or None when it is not one."""

    fields = _wifi_fields(_coerce(raw_payload).strip())
    if fields is None:
        return None
    security = _unescape(fields["T"]) if "T" in fields else None
    password = _unescape(fields["P"]) if "P" in fields else None
    return WifiCredential(
        ssid=_unescape(fields["S"]),
        security=security or None,
        password=password,
        hidden=fields.get("H", "").strip().lower() == "true",
    )


def classify(raw_payload: object) -> Classification:
    text = _coerce(raw_payload)
    stripped = text.strip()

    url = _match_url(stripped)
    if url is not None:
        return Classification(ContentType.URL, url)

    email = _match_email(stripped)
    if email is not None:
        return Classification(ContentType.EMAIL, email)

    phone = _match_phone(stripped)
    if phone is not None:
        return Classification(ContentType.PHONE, phone)

    wifi = parse_wifi(stripped)
    if wifi is not None:
        return Classification(ContentType.WIFI_CREDENTIAL, wifi.ssid)

    return Classification(ContentType.PLAIN_TEXT, text)


__all__ = [
    "CUSTOM_SCHEMES",
    "Classification",
    "WifiCredential",
    "classify",
    "parse_wifi",
]
