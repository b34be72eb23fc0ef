"""Core Key Generation Utility, mainly focusing on the generation of random primes.

This module builds textbook RSA key pairs: random odd candidates of an exact bit length are gated by a Miller-Rabin
test, two such primes form the modulus and the public exponent is fixed at 65537 unless it shares a factor with the
totient, in which case a random coprime exponent is searched for.

The randomness is injectable. Anything offering `getrandbits` and `randrange` (a `random.Random` instance, the
`random` module itself, `secrets.SystemRandom()`) will do. The default is the plain `random` module, which is NOT
cryptographically secure; pass `secrets.SystemRandom()` if the keys matter.

Typical usage example:

    miller_rabin(561)
    p = generate_prime(512)
    (n, e), (n, d) = generate_key_pair(1024)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import random
from typing import Literal, overload, Protocol

from textrsa.arith import gcd
from textrsa.arith import mod_inverse
from textrsa.arith import mod_pow
from textrsa.errors import NonTerminatingSearch

_log = logging.getLogger(__name__)

PUBLIC_EXPONENT: int = 65537
DEFAULT_ROUNDS: int = 10
EXPONENT_SEARCH_CAP: int = 10000
_WITNESS_SPAN: int = 10


class RandomSource(Protocol):
    """The subset of `random.Random` the generators rely on."""

    def getrandbits(self, k: int) -> int:
        ...

    def randrange(self, start: int, stop: int | None = None) -> int:
        ...


def miller_rabin(n: int, k: int = DEFAULT_ROUNDS, rng: RandomSource | None = None) -> bool:
    """Perform Miller-Rabin primality test.

    Witnesses are drawn from the narrow window [max(n - 10, 2), n) rather than the usual [2, n - 2]. It keeps the
    historical behaviour of the tool, at the price of weaker assurance against adversarially chosen composites.

    Args:
        n: The candidate to test.
        k: Number of rounds. Defaults to 10.
        rng: Source of the witnesses. Defaults to the `random` module.

    Returns:
        True if `n` is probably prime, False if it is certainly composite.
    """
    if n < 2:
        return False
    if n in (2, 3):
        return True
    if n % 2 == 0:
        return False
    rng = rng or random
    r = n - 1
    s = 0
    while r % 2 == 0:
        r >>= 1
        s += 1
    low = max(n - _WITNESS_SPAN, 2)
    for _ in range(k):
        a = rng.randrange(low, n)
        x = mod_pow(a, r, n)
        if x in (1, n - 1):
            continue
        for _ in range(1, s):
            x = mod_pow(x, 2, n)
            if x == 1:
                return False
            if x == n - 1:
                break
        else:
            return False
    return True


def _random_candidate(bits: int, rng: RandomSource) -> int:
    """Random odd integer of exactly `bits` bits."""
    return rng.getrandbits(bits) | (1 << (bits - 1)) | 1


def generate_prime(bits: int,
                   rng: RandomSource | None = None,
                   max_attempts: int | None = None,
                   rounds: int = DEFAULT_ROUNDS) -> int:
    """Generate a probable prime number of the specified bit size.

    A plain generate-and-test loop: the top bit is forced to fix the length, the bottom bit to make the candidate
    odd, and each candidate goes through `miller_rabin`.

    Args:
        bits: The size of the prime to generate in bits. Must be at least 2.
        rng: Source of the candidate bits and witnesses. Defaults to the `random` module.
        max_attempts: Candidates to try before giving up. Defaults to `max(100, 10 * bits)`.
        rounds: Miller-Rabin rounds per candidate.

    Returns:
        A probable prime with `bit_length() == bits`.

    Raises:
        ValueError: If `bits` is smaller than 2.
        NonTerminatingSearch: If no prime turned up within `max_attempts` candidates.
    """
    if bits < 2:
        raise ValueError("Prime size must be at least 2 bits.")
    rng = rng or random
    rep_cap = max_attempts if max_attempts is not None else max(100, 10 * bits)
    for attempt in range(1, rep_cap + 1):
        candidate = _random_candidate(bits, rng)
        if miller_rabin(candidate, rounds, rng):
            _log.debug("Found %d-bit prime after %d candidates.", bits, attempt)
            return candidate
    raise NonTerminatingSearch(
        f"Run an improbable {rep_cap} amount of loops with no {bits}-bit prime found. Check the random source.")


def choose_exponent(phi: int,
                    pub: int = PUBLIC_EXPONENT,
                    rng: RandomSource | None = None,
                    max_attempts: int = EXPONENT_SEARCH_CAP) -> int:
    """Pick the public exponent for a given totient.

    `pub` is used whenever it is coprime with `phi`. Otherwise candidates are drawn uniformly from [0, phi) until one
    is coprime with `phi`. Candidates are not filtered any further, so 1 or an even number may be returned.

    Args:
        phi: The totient (p-1)(q-1).
        pub: The preferred exponent. Defaults to 65537.
        rng: Source of the fallback candidates. Defaults to the `random` module.
        max_attempts: Fallback candidates to try before giving up.

    Returns:
        An exponent coprime with `phi`.

    Raises:
        NonTerminatingSearch: If the fallback search ran out of attempts.
    """
    if gcd(pub, phi) == 1:
        return pub
    _log.debug("Exponent %d shares a factor with the totient, searching for another.", pub)
    rng = rng or random
    for _ in range(max_attempts):
        e = rng.randrange(phi)
        if gcd(e, phi) == 1:
            return e
    raise NonTerminatingSearch(f"No exponent coprime with the totient found in {max_attempts} attempts.")


@overload
def generate_key_pair(size: int,
                      pub: int = PUBLIC_EXPONENT,
                      rng: RandomSource | None = None,
                      expose_primes: Literal[False] = False,
                      max_attempts: int = EXPONENT_SEARCH_CAP) -> tuple[tuple[int, int], tuple[int, int]]:
    ...


@overload
def generate_key_pair(size: int,
                      pub: int = PUBLIC_EXPONENT,
                      rng: RandomSource | None = None,
                      expose_primes: Literal[True] = False,
                      max_attempts: int = EXPONENT_SEARCH_CAP) -> tuple[tuple[int, int], tuple[int, int, int, int]]:
    ...


def generate_key_pair(
    size: int,
    pub: int = PUBLIC_EXPONENT,
    rng: RandomSource | None = None,
    expose_primes: bool = False,
    max_attempts: int = EXPONENT_SEARCH_CAP,
) -> tuple[tuple[int, int], tuple[int, int]] | tuple[tuple[int, int], tuple[int, int, int, int]]:
    """Generates an RSA key pair.

    Both primes are `size // 2` bits long. Nothing stops `p` and `q` from coinciding, which is vanishingly
    unlikely at any useful size.

    Args:
        size: The modulus size in bits. Must be even and at least 4.
        pub: The preferred public exponent. Defaults to 65537.
        rng: Source of randomness. Defaults to the `random` module.
        expose_primes: Whether to return the primes as well. Defaults to False.
        max_attempts: Fallback exponent candidates to try, see `choose_exponent`.

    Returns:
        A tuple of (public, private) sub-tuples (modulus, exponent) or if exposed for the private
        (modulus, exponent, p, q)

    Raises:
        ValueError: If `size` is odd or smaller than 4.
        NonTerminatingSearch: If no exponent coprime with the totient was found in `max_attempts` draws.
    """
    if size < 4:
        raise ValueError("Size must be at least 4.")
    if size % 2 != 0:
        raise ValueError("Size must be an even number.")
    p = generate_prime(size // 2, rng)
    q = generate_prime(size // 2, rng)
    n = p * q
    phi = (p - 1) * (q - 1)
    e = choose_exponent(phi, pub, rng, max_attempts)
    d = mod_inverse(e, phi)
    if not expose_primes:
        return (n, e), (n, d)
    return (n, e), (n, d, p, q)
