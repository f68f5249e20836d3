"""
Login code generator for the Spotify web-player token endpoint.

The web player does not send the sp_dc cookie alone: every token request
carries a six-digit TOTP code computed from the server time and a secret
that is baked into the player. This module reproduces that derivation.

Derivation:
    1. A fixed 17-byte cipher, each byte XOR-ed with (i % 33) + 9
    2. The decimal text of every resulting byte, concatenated
    3. The UTF-8 bytes of that text, round-tripped through hexadecimal
    4. 5-bit packing of those bytes into a Base32 alphabet string
    5. Standard Base32 decoding of that string back into the HMAC key
    6. HOTP (RFC 4226) over the 30-second time step counter

Steps 4 and 5 cancel each other out, which is intentional: the player does
exactly this and the key must match it bit for bit.

Usage:
    from spot_lyrics.spotify.totp import generate_totp

    code = generate_totp(1_700_000_000)  # "NNNNNN"
"""

import base64
import hashlib
import hmac
import struct

# Protocol version sent alongside the code as 'totpVer'
TOTP_VERSION = 5

# RFC 6238 time step in seconds
TIME_STEP = 30

# Number of digits in the login code
DIGITS = 6

_SECRET_CIPHER = (12, 56, 76, 33, 88, 44, 88, 33, 78, 78, 11, 66, 22, 22, 55, 69, 54)

_BASE32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"


def generate_totp(server_time_seconds: int) -> str:
    """
    Generate the six-digit login code for a server timestamp.

    Args:
        server_time_seconds: Unix time in seconds, normally taken from
                             https://open.spotify.com/server-time.

    Returns:
        Exactly six ASCII digits, zero-padded (e.g. "005924").

    Example:
        >>> len(generate_totp(1234567890))
        6
    """
    secret = _pack_5bit(_hex_to_bytes(_secret_hex()))
    key = _b32decode(secret)
    return _hotp(key, time_step_counter(server_time_seconds))


def time_step_counter(server_time_seconds: int) -> int:
    """
    Number of whole time steps in a timestamp, truncated toward zero.

    Negative timestamps truncate toward zero as well (-1 gives 0, -31
    gives -1), which is what the web player does with a signed 64-bit
    division.
    """
    steps = abs(server_time_seconds) // TIME_STEP
    return -steps if server_time_seconds < 0 else steps


def _derive_secret_digits() -> str:
    """Decimal text of the de-obfuscated cipher bytes."""
    return "".join(
        str(value ^ ((index % 33) + 9))
        for index, value in enumerate(_SECRET_CIPHER)
    )


def _secret_hex() -> str:
    return _derive_secret_digits().encode("utf-8").hex().upper()


def _hex_to_bytes(hex_string: str) -> bytes:
    """
    Decode a hexadecimal string.

    Raises:
        ValueError: If the string has odd length or non-hex characters.
    """
    cleaned = hex_string.replace(" ", "").strip()
    if len(cleaned) % 2:
        raise ValueError("Hex string must have an even number of characters")
    return bytes.fromhex(cleaned)


def _pack_5bit(data: bytes) -> str:
    """
    Pack bytes into Base32 alphabet characters, MSB first, without padding.

    Walks the input with a bit index into the current byte. When fewer than
    five bits remain in the current byte the digit borrows its low bits from
    the next byte (zero past the end of the input).
    """
    chars: list[str] = []
    position = 0
    bit_index = 0

    while position < len(data):
        current = data[position]

        if bit_index > 3:
            following = data[position + 1] if position + 1 < len(data) else 0
            digit = current & (0xFF >> bit_index)
            bit_index = (bit_index + 5) % 8
            digit <<= bit_index
            digit |= following >> (8 - bit_index)
            position += 1
        else:
            digit = (current >> (8 - (bit_index + 5))) & 0x1F
            bit_index = (bit_index + 5) % 8
            if bit_index == 0:
                position += 1

        chars.append(_BASE32_ALPHABET[digit])

    return "".join(chars)


def _b32decode(secret: str) -> bytes:
    """Standard RFC 4648 Base32 decoding; padding is stripped then re-added."""
    stripped = secret.rstrip("=").upper()
    padding = "=" * (-len(stripped) % 8)
    return base64.b32decode(stripped + padding)


def _hotp(key: bytes, counter: int, digits: int = DIGITS) -> str:
    """
    RFC 4226 HOTP value for a counter.

    HMAC-SHA1 over the 8-byte big-endian signed counter, then dynamic truncation:
    the low nibble of the last digest byte selects four bytes, read as a
    31-bit big-endian integer and reduced modulo 10**digits.
    """
    digest = hmac.new(key, struct.pack(">q", counter), hashlib.sha1).digest()
    offset = digest[-1] & 0x0F
    binary = struct.unpack(">I", digest[offset:offset + 4])[0] & 0x7FFFFFFF
    return str(binary % (10 ** digits)).zfill(digits)
