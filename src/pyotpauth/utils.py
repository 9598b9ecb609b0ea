import logging
import re
import secrets
import unicodedata
from hmac import compare_digest
from typing import NamedTuple, Optional
from urllib.parse import parse_qsl, quote, unquote, urlsplit

from . import base32

logger = logging.getLogger(__name__)

OTP_TYPES = ("totp", "hotp")

_NAME_STRIP = re.compile(r"[^A-Za-z0-9_@-]")


class OtpUri(NamedTuple):
    otp_type: str
    name: str
    secret: str


def sanitize_name(name: str) -> str:
    """
    Drops every character that is not a letter, digit, ``_``, ``-`` or ``@``.
    """
    return _NAME_STRIP.sub("", name)


def generate_secret(size: int) -> str:
    """
    Returns ``size`` random bytes from the OS CSPRNG, Base32 encoded.
    """
    logger.debug("Generating a %d byte secret", size)
    return base32.encode(secrets.token_bytes(size))


def build_uri(otp_type: str, name: str, secret: str) -> str:
    """
    Returns the otpauth URI for a credential; both the label and the secret
    are percent-encoded.

    For module-internal use.

    :param otp_type: ``totp`` or ``hotp``
    :param name: account name, used as the URI label
    :param secret: Base32 encoded secret
    :returns: provisioning uri
    """
    if otp_type not in OTP_TYPES:
        raise ValueError("Not a supported OTP type: {}".format(otp_type))
    return "otpauth://{0}/{1}?secret={2}".format(otp_type, quote(name, safe=""), quote(secret, safe=""))


def split_uri(uri: str) -> Optional[OtpUri]:
    """
    Splits an ``otpauth://{totp|hotp}/{name}?secret={secret}`` URI.

    :param uri: the string to inspect
    :returns: the URI parts, or None if ``uri`` is not an otpauth URI;
        a missing or empty ``secret`` parameter gives an empty secret
    """
    try:
        parts = urlsplit(uri.strip())
    except ValueError:
        return None

    otp_type = parts.netloc.lower()
    if parts.scheme.lower() != "otpauth" or otp_type not in OTP_TYPES:
        return None

    secret = ""
    for key, value in parse_qsl(parts.query):
        if key == "secret":
            secret = value

    return OtpUri(otp_type, unquote(parts.path[1:]).strip(), secret)


def strings_equal(s1: str, s2: str) -> bool:
    """
    Timing-attack resistant string comparison.

    Normal comparison using == will short-circuit on the first mismatching
    character. This avoids that by scanning the whole string, though we
    still reveal to a timing attack whether the strings are the same
    length.
    """
    s1 = unicodedata.normalize("NFKC", s1)
    s2 = unicodedata.normalize("NFKC", s2)
    return compare_digest(s1.encode("utf-8"), s2.encode("utf-8"))
