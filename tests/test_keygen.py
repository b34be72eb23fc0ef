# pylint: disable=protected-access,missing-module-docstring,redefined-outer-name
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import math
import random

import pytest
import sympy

from textrsa import keygen
from textrsa.errors import NonTerminatingSearch

FIRST_PRIMES = list(sympy.primerange(2, sympy.prime(1000) + 1))

# Strong liars come in +/- pairs, so the narrow witness window [n-10, n) holds few of them for these numbers.
composites = [
    # Edge Cases (neither)
    0,
    1,
    # Even
    4,
    6,
    65536,
    # Odd composites
    9,
    15,
    21,
    49,
    # Carmichael numbers
    561,
    1105,
    2465,
    6601,
    # Semiprimes
    sympy.prime(999) * sympy.prime(1000),
    sympy.nextprime(2**64 + 12345) * sympy.nextprime(2**70),
    sympy.nextprime(2**512) * 3,
]

large_primes = [
    2**31 - 1,
    2**61 - 1,
    2**89 - 1,
    2**127 - 1,
    pytest.param(2**521 - 1, marks=pytest.mark.slow),
    pytest.param(2**4423 - 1, marks=pytest.mark.extreme),
]

prime_sizes = [2, 3, 4, 8, 16, 32, 64, 128, 256, pytest.param(512, marks=pytest.mark.slow)]


def id_generator(param):
    if isinstance(param, int) and param > 1000000:
        return f"LargeInt-{param.bit_length()}bits"
    return str(param)


def test_first_thousand_primes_accepted():
    assert len(FIRST_PRIMES) == 1000
    rng = random.Random(5)
    for p in FIRST_PRIMES:
        assert keygen.miller_rabin(p, 10, rng), p


@pytest.mark.parametrize("n", large_primes, ids=id_generator)
def test_miller_rabin_large_primes(n):
    assert keygen.miller_rabin(n)


@pytest.mark.parametrize("n", composites, ids=id_generator)
def test_miller_rabin_composites(n):
    assert not keygen.miller_rabin(n, 10)


def test_miller_rabin_witness_window(mocker):
    n = sympy.nextprime(10**6)
    rng = mocker.Mock()
    rng.randrange.return_value = n - 2
    assert keygen.miller_rabin(n, 7, rng)
    assert rng.randrange.call_count == 7
    rng.randrange.assert_called_with(n - 10, n)


def test_miller_rabin_witness_window_small(mocker):
    rng = mocker.Mock()
    rng.randrange.return_value = 3
    assert keygen.miller_rabin(7, 3, rng)
    rng.randrange.assert_called_with(2, 7)


def test_miller_rabin_trivial_cases_skip_witnesses(mocker):
    rng = mocker.Mock()
    for n in (-5, 0, 1, 2, 3, 4, 100):
        keygen.miller_rabin(n, 10, rng)
    rng.randrange.assert_not_called()


@pytest.mark.parametrize("size", prime_sizes)
def test_generate_prime_size(size, rng):
    p = keygen.generate_prime(size, rng)
    assert p.bit_length() == size
    assert p % 2 == 1 or p == 2


@pytest.mark.parametrize("size", prime_sizes)
def test_generate_prime_isprime(size, rng):
    assert sympy.isprime(keygen.generate_prime(size, rng))


def test_generate_prime_sets_outer_bits(mocker):
    rng = mocker.Mock()
    rng.getrandbits.return_value = 0
    mocker.patch("textrsa.keygen.miller_rabin", return_value=True)
    assert keygen.generate_prime(16, rng) == (1 << 15) | 1
    rng.getrandbits.assert_called_once_with(16)


def test_generate_prime_reproducible():
    assert keygen.generate_prime(64, random.Random(1)) == keygen.generate_prime(64, random.Random(1))


def test_generate_prime_faulty(mocker):
    mocker.patch("textrsa.keygen.miller_rabin", return_value=False)
    rng = mocker.Mock()
    rng.getrandbits.return_value = 0
    with pytest.raises(NonTerminatingSearch):
        keygen.generate_prime(64, rng, max_attempts=25)
    assert rng.getrandbits.call_count == 25


def test_generate_prime_default_cap(mocker):
    mocker.patch("textrsa.keygen.miller_rabin", return_value=False)
    with pytest.raises(RuntimeError):
        keygen.generate_prime(16)
    assert keygen.miller_rabin.call_count == 160


@pytest.mark.parametrize("size", [-3, 0, 1])
def test_generate_prime_validates(size):
    with pytest.raises(ValueError):
        keygen.generate_prime(size)


def test_choose_exponent_prefers_default():
    phi = (sympy.prime(999) - 1) * (sympy.prime(1000) - 1)
    assert keygen.choose_exponent(phi) == 65537


def test_choose_exponent_fallback(mocker):
    rng = mocker.Mock()
    rng.randrange.side_effect = [0, 2, 15, 7]
    assert keygen.choose_exponent(60, 3, rng) == 7
    assert rng.randrange.call_count == 4
    rng.randrange.assert_called_with(60)


def test_choose_exponent_fallback_random(rng):
    phi = 65537 * 12
    for _ in range(20):
        e = keygen.choose_exponent(phi, rng=rng)
        assert 0 <= e < phi
        assert math.gcd(e, phi) == 1


def test_choose_exponent_accepts_degenerate_one(mocker):
    # Whether 1 (or an even exponent, for odd phi) should be excluded is unresolved. Only coprimality is checked.
    rng = mocker.Mock()
    rng.randrange.return_value = 1
    assert keygen.choose_exponent(60, 3, rng) == 1


def test_choose_exponent_bounded(mocker):
    rng = mocker.Mock()
    rng.randrange.return_value = 0
    with pytest.raises(NonTerminatingSearch):
        keygen.choose_exponent(60, 3, rng, max_attempts=50)
    assert rng.randrange.call_count == 50


@pytest.mark.parametrize("size", [-2, 0, 2, 3, 17, 1025])
def test_generate_key_pair_validates(size):
    with pytest.raises(ValueError):
        keygen.generate_key_pair(size)


def test_generate_key_pair_functional(mocker):
    src_p, src_q = sympy.prime(999), sympy.prime(1000)
    mocker.patch("textrsa.keygen.generate_prime", side_effect=[src_p, src_q])
    (n, pub), (n2, d, p, q) = keygen.generate_key_pair(26, expose_primes=True)
    keygen.generate_prime.assert_called_with(13, None)
    assert (p, q) == (src_p, src_q)
    assert n == n2 == src_p * src_q
    assert pub == 65537
    assert d == pow(65537, -1, (src_p - 1) * (src_q - 1))


def test_generate_key_pair_fallback_exponent(mocker):
    mocker.patch("textrsa.keygen.generate_prime", side_effect=[7, 11])
    rng = mocker.Mock()
    rng.randrange.side_effect = [4, 7]
    assert keygen.generate_key_pair(6, 3, rng) == ((77, 7), (77, 43))


def test_generate_key_pair_exponent_search_bounded(mocker):
    mocker.patch("textrsa.keygen.generate_prime", side_effect=[7, 11])
    rng = mocker.Mock()
    rng.randrange.return_value = 0
    with pytest.raises(NonTerminatingSearch):
        keygen.generate_key_pair(6, 3, rng, max_attempts=12)
    assert rng.randrange.call_count == 12
    rng.randrange.assert_called_with(60)


@pytest.mark.parametrize("size", [16, 32, 64, 128, 256, pytest.param(1024, marks=pytest.mark.slow)])
def test_generate_key_pair_roundcryption(size, rng):
    (n, e), (_, d, p, q) = keygen.generate_key_pair(size, rng=rng, expose_primes=True)
    assert sympy.isprime(p) and sympy.isprime(q)
    assert p.bit_length() == q.bit_length() == size // 2
    phi = (p - 1) * (q - 1)
    assert math.gcd(e, phi) == 1
    assert (e * d) % phi == 1
    if p != q:
        message = 17092025 % n
        assert pow(pow(message, e, n), d, n) == message
