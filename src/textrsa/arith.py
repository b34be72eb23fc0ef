"""Modular arithmetic primitives backing key generation and the cipher.

Plain integer algorithms, written out rather than delegated to the builtin `pow` so that the exponentiation
and inverse behave exactly as documented, including their degenerate cases.

Typical usage example:

    gcd(65537, 3120)
    mod_pow(65, 17, 3233)
    mod_inverse(17, 3120)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from textrsa.errors import ArithmeticPrecondition


def gcd(a: int, b: int) -> int:
    """Greatest common divisor by the iterative Euclidean algorithm.

    Args:
        a: A non-negative integer.
        b: A non-negative integer.

    Returns:
        The greatest common divisor. `gcd(a, 0) == a`.

    Raises:
        ArithmeticPrecondition: If either argument is negative.
    """
    if a < 0 or b < 0:
        raise ArithmeticPrecondition("gcd is only defined here for non-negative integers.")
    while b:
        a, b = b, a % b
    return a


def mod_pow(base: int, exponent: int, modulus: int) -> int:
    """Modular exponentiation by square-and-multiply.

    The exponent is consumed from its lowest bit upwards.

    Args:
        base: The base, any integer.
        exponent: The exponent. Must be >= 0.
        modulus: The modulus. Must be > 0.

    Returns:
        `base**exponent % modulus`, in range [0, modulus-1].

    Raises:
        ArithmeticPrecondition: If the modulus is not positive or the exponent is negative.
    """
    if modulus <= 0:
        raise ArithmeticPrecondition("Modulus must be positive.")
    if exponent < 0:
        raise ArithmeticPrecondition("Exponent must be non-negative.")
    result = 1 % modulus
    base %= modulus
    while exponent > 0:
        if exponent & 1:
            result = (result * base) % modulus
        base = (base * base) % modulus
        exponent >>= 1
    return result


def mod_inverse(a: int, m: int) -> int:
    """Modular inverse by the iterative Extended Euclidean Algorithm.

    Only the Bezout coefficient of `a` is tracked, such that a*x = 1 (mod m).

    Args:
        a: The number to invert. Must be >= 0 and coprime with `m`.
        m: The modulus. Must be > 0.

    Returns:
        The unique inverse of `a` in range [0, m-1]. Returns 0 when `m == 1`.

    Raises:
        ArithmeticPrecondition: If `m` is not positive, `a` is negative or `a` has no inverse modulo `m`.
    """
    if m <= 0:
        raise ArithmeticPrecondition("Modulus must be positive.")
    if a < 0:
        raise ArithmeticPrecondition("Cannot invert a negative number.")
    if m == 1:
        return 0
    if gcd(a, m) != 1:
        raise ArithmeticPrecondition(f"{a} has no inverse modulo {m}.")
    m0 = m
    x0, x1 = 0, 1
    while a > 1:
        q = a // m
        a, m = m, a % m
        x0, x1 = x1 - q * x0, x0
    return x1 % m0
