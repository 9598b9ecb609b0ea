import hashlib
import hmac
import struct

from . import base32
from .exceptions import InvalidBlockSize

BLOCK_SIZES = (64, 128)

_UINT64_MASK = (1 << 64) - 1


def hmac_sha1(key: bytes, message: bytes, block_size: int = 64) -> bytes:
    """
    HMAC-SHA1 of ``message`` with a selectable block size.

    A block size of 64 is the standard HMAC-SHA1. With 128 the key is hashed
    or zero-extended to 128 bytes and the inner and outer pads are 128 bytes
    long.

    :param key: raw key bytes
    :param message: data to authenticate
    :param block_size: 64 or 128
    :returns: 20 byte digest
    """
    if block_size not in BLOCK_SIZES:
        raise InvalidBlockSize(block_size)
    if block_size == hashlib.sha1().block_size:
        return hmac.new(key, message, hashlib.sha1).digest()

    if len(key) > block_size:
        key = hashlib.sha1(key).digest()
    key = key.ljust(block_size, b"\0")
    inner = hashlib.sha1(bytes(b ^ 0x36 for b in key) + message).digest()
    return hashlib.sha1(bytes(b ^ 0x5C for b in key) + inner).digest()


def int_to_bytestring(i: int) -> bytes:
    """
    Turns a counter into the 8 byte big-endian string fed to the HMAC.

    Negative counters are written as their 64-bit two's complement.
    """
    if not -(1 << 63) <= i <= _UINT64_MASK:
        raise ValueError("counter does not fit in 64 bits: {}".format(i))
    return struct.pack(">Q", i & _UINT64_MASK)


def dynamic_truncate(digest: bytes) -> int:
    """
    RFC 4226 dynamic truncation: the low nibble of the last byte selects four
    bytes, read as a big-endian integer with the top bit cleared.
    """
    offset = digest[-1] & 0x0F
    return (
        (digest[offset] & 0x7F) << 24
        | (digest[offset + 1] & 0xFF) << 16
        | (digest[offset + 2] & 0xFF) << 8
        | (digest[offset + 3] & 0xFF)
    )


def hotp(secret: str, counter: int, code_length: int = 6, key_size: int = 64) -> str:
    """
    Generates the HOTP code for a counter.

    :param secret: Base32 encoded key
    :param counter: the HMAC counter
    :param code_length: number of digits in the code
    :param key_size: 128 selects the 128 byte HMAC block, anything else 64
    :returns: the code, zero padded to ``code_length`` digits
    """
    key = base32.decode(secret)
    digest = hmac_sha1(key, int_to_bytestring(counter), 128 if key_size == 128 else 64)
    code = str(dynamic_truncate(digest)).rjust(code_length, "0")
    return code[len(code) - code_length :]
