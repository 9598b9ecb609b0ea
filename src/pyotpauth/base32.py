"""
Base32 codec used for otpauth secrets.

Data is processed in chunks of 5 bytes, each written as 8 symbols of 5 bits,
most significant bits first. A trailing chunk of 1-4 bytes keeps only the
symbols that are fully determined by its bits and is filled up with ``=``::

    bytes in last chunk   1  2  3  4
    symbols kept          2  4  5  7

This is not a drop-in replacement for :func:`base64.b32decode`: the symbol
table also carries ``8`` and ``9`` and the decoder is strict about padding.
Encoding never emits ``8`` or ``9``. The decoder masks their index to 5 bits,
so they read as ``A`` and ``B``, and re-encoding such input is lossy:
``encode(decode("8AAAAAAA")) == "AAAAAAAA"``.
"""

from typing import Dict, MutableSequence, Sequence

from .exceptions import InvalidCharacter, InvalidPadding

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ23456789"
PAD = "="

CHUNK_BYTES = 5
CHUNK_CHARS = 8

# bytes in a partial chunk -> meaningful symbols
PADDED_WIDTH: Dict[int, int] = {1: 2, 2: 4, 3: 5, 4: 7, 5: 8}
# meaningful symbols -> bytes in a partial chunk
PARTIAL_LENGTH: Dict[int, int] = {width: size for size, width in PADDED_WIDTH.items()}

_SYMBOLS: Dict[str, int] = {char: index for index, char in enumerate(ALPHABET)}


def encode_chunk(data: bytes) -> str:
    """
    Encodes up to 5 bytes as one 8 character chunk.

    :param data: between 0 and 5 bytes
    :returns: 8 characters, or an empty string for empty input
    """
    size = len(data)
    if size == 0:
        return ""
    if size > CHUNK_BYTES:
        raise ValueError("a chunk holds at most {} bytes, got {}".format(CHUNK_BYTES, size))

    # missing trailing bytes count as zero
    block = int.from_bytes(bytes(data).ljust(CHUNK_BYTES, b"\0"), "big")
    chars = [ALPHABET[(block >> shift) & 0x1F] for shift in range(35, -1, -5)]
    return "".join(chars[: PADDED_WIDTH[size]]).ljust(CHUNK_CHARS, PAD)


def encode(data: bytes) -> str:
    """
    Encodes a byte string, padding the last chunk with ``=``.
    """
    return "".join(encode_chunk(data[offset : offset + CHUNK_BYTES]) for offset in range(0, len(data), CHUNK_BYTES))


def _decode_char(char: str) -> int:
    if char == PAD:
        return 0
    index = _SYMBOLS.get(char)
    if index is None:
        raise InvalidCharacter(char)
    return index & 0x1F


def decode_chunk(chars: Sequence[str], dest: MutableSequence[int]) -> None:
    """
    Decodes up to 8 symbols into ``dest``.

    Missing symbols and ``=`` count as zero bits. Only as many bytes as
    ``dest`` can hold (at most 5) are written.

    :param chars: the symbols of one chunk
    :param dest: writable buffer, e.g. a ``bytearray`` or a ``memoryview`` slice
    """
    if len(chars) > CHUNK_CHARS:
        raise ValueError("a chunk holds at most {} characters, got {}".format(CHUNK_CHARS, len(chars)))

    block = 0
    for index in range(CHUNK_CHARS):
        block = (block << 5) | (_decode_char(chars[index]) if index < len(chars) else 0)

    size = min(len(dest), CHUNK_BYTES)
    dest[:size] = block.to_bytes(CHUNK_BYTES, "big")[:size]


def decode(data: str, casefold: bool = False) -> bytes:
    """
    Decodes a padded Base32 string. Whitespace anywhere in the input is ignored.

    :param data: the encoded string
    :param casefold: accept lowercase symbols
    :returns: the decoded bytes
    :raises InvalidCharacter: on a symbol outside the alphabet
    :raises InvalidPadding: if the input is not made of whole, correctly padded chunks
    """
    cleaned = "".join(data.split())
    if casefold:
        cleaned = cleaned.upper()
    if len(cleaned) % CHUNK_CHARS:
        raise InvalidPadding("encoded length must be a multiple of {}, got {}".format(CHUNK_CHARS, len(cleaned)))

    chunks = len(cleaned) // CHUNK_CHARS
    dest = bytearray(chunks * CHUNK_BYTES)
    size = len(dest)

    with memoryview(dest) as view:
        for index in range(chunks):
            start = index * CHUNK_CHARS
            window = cleaned[start : start + CHUNK_CHARS]
            fill = window.find(PAD)
            if fill >= 0:
                if index != chunks - 1:
                    raise InvalidPadding("padding found before the final chunk at position {}".format(start + fill))
                if window[fill:] != PAD * (CHUNK_CHARS - fill):
                    raise InvalidPadding("data after padding in final chunk {!r}".format(window))
                window = window[:fill]
                partial = PARTIAL_LENGTH.get(len(window))
                if partial is None:
                    raise InvalidPadding("invalid padding: {} symbols in final chunk".format(len(window)))
                size -= CHUNK_BYTES - partial
            try:
                decode_chunk(window, view[index * CHUNK_BYTES : (index + 1) * CHUNK_BYTES])
            except InvalidCharacter as e:
                raise InvalidCharacter(e.char, start + window.index(e.char)) from None

    return bytes(dest[:size])
