import time
from typing import Optional

from .hotp import hotp


def now_millis() -> int:
    """
    Current wall clock time in milliseconds since the Unix epoch.
    """
    return time.time_ns() // 1_000_000


def timecode(now: int, epoch: int = 0, time_slice: int = 30) -> int:
    """
    Number of whole time slices between ``epoch`` and ``now``.

    Rounds toward negative infinity, so instants before ``epoch`` give
    negative counters.

    :param now: milliseconds since the Unix epoch
    :param epoch: start of slice 0, in seconds
    :param time_slice: slice length in seconds
    """
    return int((now - epoch * 1000) // (time_slice * 1000))


def totp(
    secret: str,
    now: Optional[int] = None,
    code_length: int = 6,
    key_size: int = 64,
    epoch: int = 0,
    time_slice: int = 30,
) -> str:
    """
    Generates the TOTP code for an instant.

    :param secret: Base32 encoded key
    :param now: milliseconds since the Unix epoch, defaults to the current time
    :param code_length: number of digits in the code
    :param key_size: HMAC block size selector, see :func:`pyotpauth.hotp.hotp`
    :param epoch: start of slice 0, in seconds
    :param time_slice: slice length in seconds
    """
    if now is None:
        now = now_millis()
    return hotp(secret, timecode(now, epoch, time_slice), code_length, key_size)
