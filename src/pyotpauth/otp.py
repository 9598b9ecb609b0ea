import logging
from typing import Any, Dict, Mapping, Optional, Union

from . import base32, utils
from .hotp import hotp as hotp_code
from .totp import now_millis
from .totp import timecode as slice_counter

logger = logging.getLogger(__name__)

CLASS_ID = "OTP{@pipobscure}"

DEFAULT_NAME = "OTP-Authentication"
DEFAULT_KEY_SIZE = 64
DEFAULT_CODE_LENGTH = 6
DEFAULT_EPOCH = 0
DEFAULT_TIME_SLICE = 30

# JSON envelope field -> attribute
_FIELDS = {
    "name": "name",
    "keySize": "key_size",
    "codeLength": "code_length",
    "secret": "secret",
    "epoch": "epoch",
    "timeSlice": "time_slice",
}
_ATTRIBUTES = set(_FIELDS.values())


def _option_names(options: Mapping[str, Any]) -> Dict[str, Any]:
    # accepts both the envelope spelling and keyword names, None means default
    result = {}
    for key, value in options.items():
        if key == "class":
            continue
        attr = _FIELDS.get(key, key)
        if attr not in _ATTRIBUTES:
            raise TypeError("unexpected OTP option: {!r}".format(key))
        if value is not None:
            result[attr] = value
    return result


def _options_from_uri(uri: str) -> Dict[str, Any]:
    parts = utils.split_uri(uri)
    if parts is None:
        logger.debug("Not an otpauth URI, reading the input as a bare secret")
        raw = base32.decode(uri, casefold=True)
        return {"key_size": len(raw), "secret": base32.encode(raw)}

    options: Dict[str, Any] = {}
    if parts.secret:
        raw = base32.decode(parts.secret, casefold=True)
        options.update(key_size=len(raw), secret=base32.encode(raw))
    if parts.name:
        options["name"] = parts.name
    return options


class OTP(object):
    """
    An OTP credential: account name, shared secret and code settings.

    Instances are immutable. Codes are pure functions of the credential and
    the counter or timestamp passed in.

    :param options: an otpauth URI, a bare Base32 secret, or a mapping of options
        (``keySize``/``key_size`` style keys are both accepted)
    :param name: account name, reduced to letters, digits, ``_``, ``-`` and ``@``
    :param key_size: 128 for a 128 byte key, anything else means 64
    :param code_length: number of digits in generated codes
    :param secret: Base32 secret; a random ``key_size`` byte secret is generated if missing
    :param epoch: start of TOTP slice 0, in seconds since the Unix epoch
    :param time_slice: TOTP slice length in seconds
    """

    __slots__ = ("_name", "_key_size", "_code_length", "_secret", "_epoch", "_time_slice")

    def __init__(self, options: Union[str, Mapping[str, Any], None] = None, **kwargs: Any) -> None:
        settings: Dict[str, Any] = {}
        if isinstance(options, Mapping):
            settings.update(_option_names(options))
        elif options is not None and not isinstance(options, str):
            raise TypeError("options must be a URI string or a mapping, not {}".format(type(options).__name__))
        settings.update(_option_names(kwargs))
        if isinstance(options, str):
            settings.update(_options_from_uri(options))

        key_size = 128 if settings.get("key_size") == 128 else DEFAULT_KEY_SIZE
        object.__setattr__(self, "_name", utils.sanitize_name(str(settings.get("name") or DEFAULT_NAME)))
        object.__setattr__(self, "_key_size", key_size)
        object.__setattr__(self, "_code_length", settings.get("code_length", DEFAULT_CODE_LENGTH))
        object.__setattr__(self, "_secret", settings.get("secret") or utils.generate_secret(key_size))
        object.__setattr__(self, "_epoch", settings.get("epoch", DEFAULT_EPOCH))
        object.__setattr__(self, "_time_slice", settings.get("time_slice", DEFAULT_TIME_SLICE))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("OTP instances are immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("OTP instances are immutable")

    @classmethod
    def parse(cls, uri: str = "", **options: Any) -> "OTP":
        """
        Reads an ``otpauth://`` URI, or failing that a bare Base32 secret.

        The secret is decoded and re-encoded so its padding is normalised.
        ``options`` fill in whatever the URI does not carry.

        :raises InvalidCharacter: if the secret contains a symbol outside the alphabet
        :raises InvalidPadding: if the secret is not correctly padded
        """
        return cls(uri, **options)

    @property
    def name(self) -> str:
        return self._name

    @property
    def key_size(self) -> int:
        return self._key_size

    @property
    def code_length(self) -> int:
        return self._code_length

    @property
    def secret(self) -> str:
        return self._secret

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def time_slice(self) -> int:
        return self._time_slice

    @property
    def options(self) -> Dict[str, Any]:
        return {attr: getattr(self, attr) for attr in _FIELDS.values()}

    @property
    def totp_url(self) -> str:
        return utils.build_uri("totp", self.name, self.secret)

    @property
    def hotp_url(self) -> str:
        return utils.build_uri("hotp", self.name, self.secret)

    def byte_secret(self) -> bytes:
        return base32.decode(self.secret)

    def hotp(self, counter: int) -> str:
        """
        Generates the OTP for the given counter.

        :param counter: the OTP HMAC counter
        :returns: OTP
        """
        return hotp_code(self.secret, counter, self.code_length, self.key_size)

    def timecode(self, now: Optional[int] = None) -> int:
        """
        Time slice counter for ``now`` (milliseconds), defaulting to the current time.
        """
        if now is None:
            now = now_millis()
        return slice_counter(now, self.epoch, self.time_slice)

    def totp(self, now: Optional[int] = None) -> str:
        """
        Generates the OTP for an instant.

        :param now: milliseconds since the Unix epoch, defaults to the current time
        :returns: OTP
        """
        return self.hotp(self.timecode(now))

    def verify_hotp(self, code: str, counter: int) -> bool:
        """
        Verifies a code against the one for ``counter``.
        """
        return utils.strings_equal(str(code), self.hotp(counter))

    def verify_totp(self, code: str, now: Optional[int] = None, valid_window: int = 0) -> bool:
        """
        Verifies a code against the one for ``now``.

        :param code: the code to check
        :param now: milliseconds since the Unix epoch, defaults to the current time
        :param valid_window: also accept codes this many time slices before or after
        """
        counter = self.timecode(now)
        return any(self.verify_hotp(code, counter + delta) for delta in range(-valid_window, valid_window + 1))

    def to_json(self) -> Dict[str, Any]:
        """
        The JSON envelope of this credential, see :meth:`revive_json`.
        """
        envelope: Dict[str, Any] = {"class": CLASS_ID}
        for field, attr in _FIELDS.items():
            envelope[field] = getattr(self, attr)
        return envelope

    @classmethod
    def revive_json(cls, value: Any) -> Any:
        """
        Rebuilds a credential from its JSON envelope. Anything without the
        ``class`` tag is returned unchanged, so this can be used directly as
        a ``json.loads`` ``object_hook``.
        """
        if not isinstance(value, Mapping) or value.get("class") != CLASS_ID:
            return value
        return cls({field: value.get(field) for field in _FIELDS})

    @classmethod
    def reviver(cls, key: str, value: Any) -> Any:
        return cls.revive_json(value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OTP):
            return NotImplemented
        return self.options == other.options

    def __hash__(self) -> int:
        return hash(tuple(self.options.values()))

    def __repr__(self) -> str:
        return "{}(name={!r}, key_size={}, code_length={}, epoch={}, time_slice={})".format(
            type(self).__name__, self.name, self.key_size, self.code_length, self.epoch, self.time_slice
        )
