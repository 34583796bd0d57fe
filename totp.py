"""
totp.py – Time-based one-time password engine.

This module contains CodeGenerator, a pure implementation of:

  - RFC 4226 (HOTP): HMAC-SHA1 over an 8-byte big-endian counter followed
    by dynamic truncation (section 5.4) to a 6-digit decimal code.
  - RFC 6238 (TOTP): HOTP keyed by floor(unix_time / 30).
  - RFC 4648 Base32 (padded) for human-typable secrets.
  - The Key URI format understood by authenticator apps
    (otpauth://totp/...).

CodeGenerator performs no I/O and keeps no state beyond the decoded secret
and the clock it was given.  The parameters are fixed at the RFC defaults
(6 digits, 30-second step, SHA-1).
"""

import base64
import hashlib
import hmac
import secrets
import struct
import time
from typing import Callable
from urllib.parse import quote, urlencode

from errors import ClockError, InvalidEncodingError

DIGITS = 6
TIME_STEP = 30

# 160-bit secrets, the size recommended by RFC 4226 section 4.
SECRET_BYTES = 20

# The HOTP counter is an unsigned 64-bit integer.
MAX_COUNTER = 2 ** 64 - 1


def decode_secret(secret_text: str) -> bytes:
    """
    Decode padded RFC 4648 Base32 *secret_text* into raw key bytes.

    Raises InvalidEncodingError for characters outside the alphabet,
    lowercase input, or missing/invalid padding.
    """
    try:
        return base64.b32decode(secret_text, casefold=False)
    except (ValueError, TypeError) as exc:
        # binascii.Error is a ValueError subclass; non-ASCII str raises ValueError.
        raise InvalidEncodingError(f"Secret is not valid Base32: {exc}") from exc


def encode_secret(raw: bytes) -> str:
    """Return *raw* as padded, uppercase RFC 4648 Base32 text."""
    return base64.b32encode(raw).decode("ascii")


def generate_secret() -> str:
    """Return a fresh Base32 secret of SECRET_BYTES bytes from a CSPRNG."""
    return encode_secret(secrets.token_bytes(SECRET_BYTES))


def check_time(unix_time) -> int:
    """
    Return *unix_time* as whole seconds.

    Raises ClockError for a pre-epoch time or one whose counter does not
    fit the 8-byte HOTP counter.
    """
    if unix_time < 0:
        raise ClockError("System clock reports a time before the Unix epoch")
    seconds = int(unix_time)
    if seconds // TIME_STEP > MAX_COUNTER:
        raise ClockError(f"Time {seconds} is beyond the HOTP counter range")
    return seconds


def read_clock(clock: Callable[[], float] = time.time) -> int:
    """Read *clock* and validate it with check_time().  Raises ClockError."""
    try:
        now = clock()
    except OSError as exc:
        raise ClockError(f"System clock is unavailable: {exc}") from exc
    return check_time(now)


def seconds_remaining(unix_time: int) -> int:
    """Seconds left before the code for *unix_time* rolls over."""
    return TIME_STEP - (int(unix_time) % TIME_STEP)


class CodeGenerator:
    """
    Derives TOTP codes for one secret.

    Parameters
    ----------
    secret_text : str
        Padded Base32 secret.  Decoded eagerly so an invalid secret fails
        at construction with InvalidEncodingError.
    clock : callable, optional
        Returns the current Unix time in seconds.  Defaults to time.time.
    """

    def __init__(self, secret_text: str, clock: Callable[[], float] = time.time) -> None:
        self.secret: bytes = decode_secret(secret_text)
        self.digits: int = DIGITS
        self.interval: int = TIME_STEP
        self._clock = clock

    # ------------------------------------------------------------------
    # Code generation
    # ------------------------------------------------------------------

    def code(self, unix_time: int) -> str:
        """
        Return the code for the 30-second window containing *unix_time*.

        Raises ClockError when *unix_time* is outside the counter range.
        """
        counter = check_time(unix_time) // self.interval
        return self.hotp(counter)

    def hotp(self, counter: int) -> str:
        """
        Return the RFC 4226 code for *counter*.

        The counter is packed as an unsigned 64-bit big-endian integer; the
        top bit of the truncated value is masked so the result is a 31-bit
        unsigned number.
        """
        if not 0 <= counter <= MAX_COUNTER:
            raise ClockError(f"Counter {counter} is outside the HOTP counter range")
        counter_bytes = struct.pack(">Q", counter)
        digest = hmac.new(self.secret, counter_bytes, hashlib.sha1).digest()

        offset = digest[19] & 0x0F
        value = (
            ((digest[offset] & 0x7F) << 24)
            | (digest[offset + 1] << 16)
            | (digest[offset + 2] << 8)
            | digest[offset + 3]
        )
        return str(value % 10 ** self.digits).zfill(self.digits)

    def now(self) -> str:
        """Return the code for the current time.  Raises ClockError only."""
        return self.code(read_clock(self._clock))

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    def provisioning_uri(self, account_name: str, issuer: str) -> str:
        """
        Build an otpauth:// URI for import into an authenticator app.

        The account name becomes a percent-encoded path segment; the query
        parameters are form-encoded, so the '=' padding of the secret is
        sent as %3D.
        """
        query = urlencode(
            [
                ("secret", encode_secret(self.secret)),
                ("digits", str(self.digits)),
                ("period", str(self.interval)),
                ("issuer", issuer),
            ]
        )
        return f"otpauth://totp/{quote(account_name, safe='')}?{query}"
