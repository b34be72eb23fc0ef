"""Provides core RSA functionalities, namely key handling and the per-character cipher.

Facilitates core RSA, solely under "textbook" conditions: every UTF-16 code unit of a message is raised to the key
exponent on its own, without padding or randomization. Identical characters therefore encrypt identically under one
key. Handles the keys themselves as well as their token encoding and some supporting marshalling functions.

Typical usage example:

    tokens = generate_keys(1024)
    c = RSAPubKey.from_token(tokens.public_key).encrypt("Hi there!")
    r = RSAPrivKey.from_token(tokens.private_key).decrypt(c)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import binascii
import pathlib
import typing
import warnings

from pyasn1.codec.der import decoder
from pyasn1.codec.der import encoder
from pyasn1.codec.native import encoder as localize
from pyasn1_modules import rfc8017

from textrsa import keygen
from textrsa.arith import mod_pow
from textrsa.errors import InvalidCiphertext
from textrsa.errors import InvalidKeyToken
from textrsa.errors import RoundTripMismatch

MIN_KEY_SIZE = 16
PRODUCTION_KEY_SIZE = 1024
CODE_UNIT_MAX = 0xFFFF
DELIMITER = ","

PEM_TYPES = {
    "PKCS1_PUB": ("-----BEGIN RSA PUBLIC KEY-----", "-----END RSA PUBLIC KEY-----"),
}


class RSAKey:
    """The overall RSA key class implementation.

    Acts mostly as a template for the components shared by public and private keys, which for textbook RSA is
    everything: a modulus and an exponent.

    Attributes:
        mod: The modulus of the keypair.
        expo: The exponent of the key, whether private or public.
    """

    def __init__(self, mod: int, expo: int) -> None:
        self.mod = mod
        self.expo = expo

    def c_rsa(self, message: int, strict: bool = False) -> int:
        """Performs core RSA operation. (Encrypt/Decrypt).

        Args:
            message: The int-marshalled message unit.
            strict: Whether to reject units that do not fit below the modulus.

        Returns:
            The transformed unit.

        Raises:
            RoundTripMismatch: If `strict` and the unit is out of range for the current key.
        """
        if strict and not 0 <= message < self.mod:
            raise RoundTripMismatch("Message representative must be in range [0, mod-1]")
        return mod_pow(message, self.expo, self.mod)

    def to_token(self) -> str:
        """Serialize the key as a token: base64 of "{exponent},{modulus}"."""
        return token_enc(self.expo, self.mod)

    @classmethod
    def from_token(cls, token: str) -> "RSAKey":
        """Rebuild a key from its token.

        Args:
            token: A token produced by `to_token` (or `generate_keys`).

        Returns:
            The decoded key.

        Raises:
            InvalidKeyToken: If the token is malformed.
        """
        expo, mod = token_dec(token)
        return cls(mod, expo)


class RSAPubKey(RSAKey):
    """A rather straightforward subclass of RSAKey, for Public Keys.

    Provides encryption and PKCS#1 export of the public half.
    """

    def encrypt(self, message: str, strict: bool = False) -> str:
        """Use the public key to encrypt the message, one character at a time.

        Characters outside the Basic Multilingual Plane are split into their two surrogate code units first.

        Args:
            message: The message to encrypt.
            strict: If true, refuse code units that are not below the modulus, as they could not be recovered.

        Returns:
            The ciphertext token: decimal units joined by commas.

        Raises:
            RoundTripMismatch: If `strict` and the modulus is too small for a code unit.
        """
        units = code_units(message)
        if strict and self.mod <= max(units, default=0):
            raise RoundTripMismatch(f"Modulus {self.mod} is too small to encrypt this message losslessly.")
        return DELIMITER.join(str(self.c_rsa(unit)) for unit in units)

    def export(self, file: pathlib.Path) -> None:
        """Export the Public RSA key to file.

        We use the PKCS1 export standard for the public key, due to its lack of information regarding identity.

        Args:
            file: The file to export the public key to.
        """
        keydata = rfc8017.RSAPublicKey()
        keydata["modulus"] = self.mod
        keydata["publicExponent"] = self.expo
        write_pem(file, "PKCS1_PUB", encoder.encode(keydata))

    @classmethod
    def import_key(cls, file: pathlib.Path) -> "RSAPubKey":
        """Import the Public RSA key from a PKCS1 PEM file.

        Args:
            file: The file to import the public key from.

        Returns:
            An RSAPubKey object with the imported public key.
        """
        payload = read_pem(file, "PKCS1_PUB")
        keydata, _ = decoder.decode(payload, asn1Spec=rfc8017.RSAPublicKey())
        pykeyd = localize.encode(keydata)
        return cls(pykeyd["modulus"], pykeyd["publicExponent"])


class RSAPrivKey(RSAKey):
    """RSA Private Key class implementation.

    Holds only the private exponent and the modulus, which is all the token format carries.
    """

    def decrypt(self, message: str, strict: bool = False) -> str:
        """Decrypts the ciphertext token using the private key.

        A key whose modulus is not above every code unit of the original text silently produces different
        characters. Recovered codes are truncated to 16 bits in that case, unless `strict` is set.

        Args:
            message: The ciphertext token to decrypt.
            strict: If true, raise instead of returning corrupted text.

        Returns:
            The decrypted message.

        Raises:
            InvalidCiphertext: If the token is not a comma-separated list of decimal integers.
            RoundTripMismatch: If `strict` and a unit or recovered code is out of range.
        """
        units = []
        for unit in parse_ciphertext(message):
            code = self.c_rsa(unit, strict)
            if code > CODE_UNIT_MAX:
                if strict:
                    raise RoundTripMismatch(f"Recovered code {code} is not a 16-bit code unit.")
                code &= CODE_UNIT_MAX
            units.append(code)
        return from_code_units(units)

    @classmethod
    def generate_pair(cls, size: int, rng: keygen.RandomSource | None = None) -> "KeyPair":
        """Generates a new key pair, see `KeyPair.generate`.

        Args:
            size: The modulus size in bits.
            rng: Source of randomness. Defaults to the `random` module.

        Returns:
            The public and private key objects.
        """
        return KeyPair.generate(size, rng)


class KeyPair(typing.NamedTuple):
    public: RSAPubKey
    private: RSAPrivKey

    @classmethod
    def generate(cls, size: int, rng: keygen.RandomSource | None = None) -> "KeyPair":
        """Generates a fresh key pair of the given modulus size in bits."""
        (n, e), (_, d) = keygen.generate_key_pair(size, rng=rng)
        return cls(RSAPubKey(n, e), RSAPrivKey(n, d))


class KeyTokens(typing.NamedTuple):
    public_key: str
    private_key: str


def generate_keys(size: int, rng: keygen.RandomSource | None = None) -> KeyTokens:
    """Generate a key pair and return it as tokens.

    Sizes below 1024 bits work, but earn a RuntimeWarning.

    Args:
        size: The modulus size in bits. Must be even and at least 16.
        rng: Source of randomness. Defaults to the `random` module.

    Returns:
        The public and private key tokens.

    Raises:
        ValueError: If the size is odd or smaller than 16.
    """
    if size < MIN_KEY_SIZE:
        raise ValueError(f"Size must be at least {MIN_KEY_SIZE}.")
    if size < PRODUCTION_KEY_SIZE:
        warnings.warn(f"For production, key size should be at least {PRODUCTION_KEY_SIZE} bits.", RuntimeWarning)
    pair = KeyPair.generate(size, rng)
    return KeyTokens(pair.public.to_token(), pair.private.to_token())


def token_enc(expo: int, mod: int) -> str:
    """Encodes an (exponent, modulus) pair into a key token.

    Args:
        expo: The key exponent.
        mod: The key modulus.

    Returns:
        Base64 of the ASCII text "{expo},{mod}".
    """
    return base64.b64encode(f"{expo}{DELIMITER}{mod}".encode("ascii")).decode("ascii")


def _token_fields(token: str) -> list[str]:
    try:
        return base64.b64decode(token.encode("ascii"), validate=True).decode("ascii").split(DELIMITER)
    except (binascii.Error, UnicodeError) as exc:
        raise InvalidKeyToken("Key token is not valid base64 text.") from exc


def token_dec(token: str) -> tuple[int, int]:
    """Decodes a key token into its (exponent, modulus) pair.

    Args:
        token: The base64 key token.

    Returns:
        The exponent and the modulus.

    Raises:
        InvalidKeyToken: If the token does not hold exactly two decimal fields, or the modulus is zero.
    """
    fields = _token_fields(token)
    if len(fields) != 2 or not all(field.isdecimal() and field.isascii() for field in fields):
        raise InvalidKeyToken("Key token must hold exactly two decimal integers.")
    expo, mod = (int(field) for field in fields)
    if mod == 0:
        raise InvalidKeyToken("Key modulus must be positive.")
    return expo, mod


def validate_token(token: str) -> bool:
    """Cheap syntactic sanity check of a key token.

    Only checks that the token decodes to at least two comma-separated fields. This is NOT cryptographic
    validation; a token passing it may still fail `token_dec`.

    Args:
        token: The token to check.

    Returns:
        True if the token looks like a key token.
    """
    try:
        return len(_token_fields(token)) >= 2
    except InvalidKeyToken:
        return False


def code_units(message: str) -> list[int]:
    """Splits text into its UTF-16 code units."""
    raw = message.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(raw[i:i + 2], byteorder="little") for i in range(0, len(raw), 2)]


def from_code_units(units: list[int]) -> str:
    """Joins UTF-16 code units back into text, keeping unpaired surrogates."""
    raw = b"".join(unit.to_bytes(2, byteorder="little") for unit in units)
    return raw.decode("utf-16-le", "surrogatepass")


def parse_ciphertext(message: str) -> list[int]:
    """Splits a ciphertext token into its integer units.

    Args:
        message: Decimal integers joined by commas. The empty string holds no units.

    Returns:
        The ciphertext units.

    Raises:
        InvalidCiphertext: If a field is not a non-negative decimal integer.
    """
    if not message:
        return []
    fields = message.split(DELIMITER)
    if not all(field.isdecimal() and field.isascii() for field in fields):
        raise InvalidCiphertext("Ciphertext must be decimal integers separated by commas.")
    return [int(field) for field in fields]


def read_pem(file: pathlib.Path, subtype: str) -> bytes:
    """Reads a PEM encoded file.

    Args:
        file: The file to read.
        subtype: The subtype of PEM encoding to accept.

    Returns:
        The decoded PEM encoded file.

    Raises:
        IOError: If the file has invalid PEM encoding.
    """
    curr_type = PEM_TYPES[subtype]
    with open(file, "r", encoding="ascii") as f:
        headline = f.readline().strip()
        if headline != curr_type[0]:
            raise IOError(f"PEM Headline {headline} does not match {curr_type[0]}")
        parcel = []
        while True:
            line = f.readline().strip()
            if not line:
                raise IOError(f"PEM File does not contain footer: {curr_type[1]}")
            if line == curr_type[1]:
                break
            parcel.append(line)
    return base64.b64decode("".join(parcel))


def write_pem(file: pathlib.Path, subtype: str, data: bytes) -> None:
    """Writes a PEM encoded file.

    Args:
        file: The file to write.
        subtype: The subtype of PEM encoding to write.
        data: The data to write.
    """
    curr_type = PEM_TYPES[subtype]
    payload = base64.b64encode(data).decode()
    with open(file, "w", encoding="ascii") as f:
        f.write(curr_type[0] + "\n")
        res = "\n".join(payload[i:i + 64] for i in range(0, len(payload), 64))
        res += "\n" if res else ""
        f.write(res)
        f.write(curr_type[1] + "\n")
