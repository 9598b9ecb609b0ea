import json
import logging
from typing import Any

from . import base32 as base32
from .exceptions import Base32Error as Base32Error
from .exceptions import InvalidBlockSize as InvalidBlockSize
from .exceptions import InvalidCharacter as InvalidCharacter
from .exceptions import InvalidPadding as InvalidPadding
from .exceptions import MalformedURI as MalformedURI
from .exceptions import OTPError as OTPError
from .hotp import hmac_sha1 as hmac_sha1
from .otp import CLASS_ID as CLASS_ID
from .otp import OTP as OTP
from .utils import generate_secret, split_uri

logging.getLogger(__name__).addHandler(logging.NullHandler())


def random_secret(key_size: int = 64) -> str:
    """
    Generates a Base32 secret of ``key_size`` random bytes (64 or 128).
    """
    if key_size not in (64, 128):
        raise ValueError("key_size must be 64 or 128")
    return generate_secret(key_size)


def parse_uri(uri: str) -> OTP:
    """
    Parses an ``otpauth://totp/...`` or ``otpauth://hotp/...`` URI.

    Unlike :meth:`OTP.parse` this does not fall back to reading the input as
    a bare secret.

    :param uri: the hotp/totp URI to parse
    :returns: OTP object
    :raises MalformedURI: if ``uri`` is not an otpauth URI with a secret
    """
    parts = split_uri(uri)
    if parts is None or not parts.secret:
        raise MalformedURI("Not an otpauth URI with a secret: {!r}".format(uri.split("?", 1)[0]))
    return OTP.parse(uri)


def _default(obj: Any) -> Any:
    if isinstance(obj, OTP):
        return obj.to_json()
    raise TypeError("Object of type {} is not JSON serializable".format(type(obj).__name__))


def dumps(obj: Any, **kwargs: Any) -> str:
    """
    :func:`json.dumps` that writes :class:`OTP` instances as their JSON envelope.
    """
    kwargs.setdefault("default", _default)
    return json.dumps(obj, **kwargs)


def loads(s: str, **kwargs: Any) -> Any:
    """
    :func:`json.loads` that revives :class:`OTP` envelopes.
    """
    kwargs.setdefault("object_hook", OTP.revive_json)
    return json.loads(s, **kwargs)
