"""Exception hierarchy for textrsa.

Every error raised on purpose by the library derives from `RSAError`, and additionally from the builtin the library
has always used for that kind of failure (`ValueError` for bad input, `RuntimeError` for failures at runtime), so
callers can catch whichever is more convenient.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class RSAError(Exception):
    """Base class for all textrsa errors."""


class InvalidKeyToken(RSAError, ValueError):
    """A key token could not be decoded into an (exponent, modulus) pair."""


class InvalidCiphertext(RSAError, ValueError):
    """A ciphertext token holds something other than comma-separated decimal integers."""


class ArithmeticPrecondition(RSAError, ValueError):
    """Input outside the domain of a modular arithmetic primitive."""


class RoundTripMismatch(RSAError, ValueError):
    """A character code or ciphertext unit does not fit below the modulus.

    Only raised in strict mode; permissive mode lets the value wrap silently.
    """


class NonTerminatingSearch(RSAError, RuntimeError):
    """A randomized search (prime or exponent) ran out of attempts."""


class TaskFault(RSAError, RuntimeError):
    """An offloaded encrypt/decrypt worker died or failed unexpectedly."""
