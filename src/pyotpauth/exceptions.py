from typing import Optional


class OTPError(Exception):
    """
    Base class for errors raised by pyotpauth.
    """


class Base32Error(OTPError, ValueError):
    """
    A string could not be decoded with the otpauth Base32 alphabet.
    """


class InvalidCharacter(Base32Error):
    def __init__(self, char: str, position: Optional[int] = None) -> None:
        self.char = char
        self.position = position
        if position is None:
            message = "invalid character: {!r}".format(char)
        else:
            message = "invalid character {!r} at position {}".format(char, position)
        super().__init__(message)


class InvalidPadding(Base32Error):
    pass


class InvalidBlockSize(OTPError, ValueError):
    def __init__(self, block_size: int) -> None:
        self.block_size = block_size
        super().__init__("blocksize must be either 64 or 128, but was: {}".format(block_size))


class MalformedURI(OTPError, ValueError):
    pass
