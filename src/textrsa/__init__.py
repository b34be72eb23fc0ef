"""Textbook RSA text encryption, with the heavy lifting offloaded to worker processes.

Provides key generation (Miller-Rabin gated primes), the modular arithmetic underneath it, a per-character cipher
over base64 key tokens, and async wrappers running each encryption or decryption in its own process.

Typical usage example:

    tokens = generate_keys(1024)
    c = await encrypt("Hi there!", tokens.public_key)
    r = await decrypt(c, tokens.private_key)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from textrsa.arith import gcd
from textrsa.arith import mod_inverse
from textrsa.arith import mod_pow
from textrsa.errors import ArithmeticPrecondition
from textrsa.errors import InvalidCiphertext
from textrsa.errors import InvalidKeyToken
from textrsa.errors import NonTerminatingSearch
from textrsa.errors import RoundTripMismatch
from textrsa.errors import RSAError
from textrsa.errors import TaskFault
from textrsa.keygen import generate_key_pair
from textrsa.keygen import generate_prime
from textrsa.keygen import miller_rabin
from textrsa.offload import decrypt
from textrsa.offload import encrypt
from textrsa.rsa import generate_keys
from textrsa.rsa import KeyPair
from textrsa.rsa import KeyTokens
from textrsa.rsa import RSAPrivKey
from textrsa.rsa import RSAPubKey
from textrsa.rsa import validate_token

__version__ = "0.1.0"
__all__ = [
    "RSAPrivKey",
    "RSAPubKey",
    "KeyPair",
    "KeyTokens",
    "generate_keys",
    "validate_token",
    "encrypt",
    "decrypt",
    "gcd",
    "mod_pow",
    "mod_inverse",
    "miller_rabin",
    "generate_prime",
    "generate_key_pair",
    "RSAError",
    "InvalidKeyToken",
    "InvalidCiphertext",
    "ArithmeticPrecondition",
    "RoundTripMismatch",
    "NonTerminatingSearch",
    "TaskFault",
]
