"""
Input Sanitizers
Form-input hygiene applied before values are hashed, signed or stored.

These are not full validators. The email check is a shape check, not an
RFC 5322 parser, and the phone check only knows Kenyan numbering.
"""

import re

from akiguard.errors import InvalidEmailError, InvalidPhoneFormatError


MAX_STRING_LENGTH = 1000
KENYA_PREFIX = "+254"

_BLACKLIST = re.compile(r"[<>\"'%;()&+]")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_DIGITS = re.compile(r"\D")


def _truncate_utf16(value: str, limit: int) -> str:
    # Characters outside the BMP count as two units (a surrogate pair) and are
    # never split
    units = 0
    for index, char in enumerate(value):
        units += 2 if ord(char) > 0xFFFF else 1
        if units > limit:
            return value[:index]
    return value


def sanitize_string(value: str) -> str:
    """
    Strip < > " ' % ; ( ) & +, trim whitespace, cap the length.

    The cap is 1000 UTF-16 code units, so an emoji counts as two.
    """
    return _truncate_utf16(_BLACKLIST.sub("", value).strip(), MAX_STRING_LENGTH)


def sanitize_email(value: str) -> str:
    """
    Lowercase and trim an email address.

    Raises:
        InvalidEmailError: If the result is not shaped like local@domain.tld.
    """
    email = value.lower().strip()
    if not _EMAIL.match(email):
        raise InvalidEmailError("Invalid email format")
    return email


def sanitize_kenyan_phone(value: str) -> str:
    """
    Normalize a Kenyan phone number to +254XXXXXXXXX.

    "0712345678", "254712345678" and "712345678" all become "+254712345678".
    Apply once, to raw input. It is not meant to be reapplied to its own output.

    Raises:
        InvalidPhoneFormatError: If the digits fit none of the known forms.
    """
    digits = _NON_DIGITS.sub("", value)

    if digits.startswith("0"):
        return KENYA_PREFIX + digits[1:]
    if digits.startswith("254"):
        return "+" + digits
    if len(digits) == 9:
        return KENYA_PREFIX + digits

    raise InvalidPhoneFormatError("Invalid Kenyan phone number format")
