"""The Command Line Interface for the utility, including Interactive elements.

A hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface): whatever is not given on the command
line is asked for interactively, down to the subcommand itself. With `--non-interactive` missing values fall back to
their defaults, or fail if there is none.

Typical usage example:

    textrsa
    OR
    python -m textrsa keygen --bits 2048
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import asyncio
import logging
import pathlib
import sys
import typing

import textrsa
from textrsa import offload
from textrsa.rsa import generate_keys
from textrsa.rsa import MIN_KEY_SIZE
from textrsa.rsa import RSAPubKey
from textrsa.rsa import validate_token


class HelpData(typing.NamedTuple):
    description: str
    format: typing.Type = str
    choices: list[str] | None = None
    default: typing.Any = None


help_dict: dict[str, HelpData] = {
    "subcommand":
        HelpData(
            description="The available subcommands in textrsa.",
            choices=["keygen", "encrypt", "decrypt"],
        ),
    "keygen":
        HelpData("Create an RSA key pair."),
    "encrypt":
        HelpData("Encrypt a message."),
    "decrypt":
        HelpData("Decrypt a message."),
    "bits":
        HelpData(
            description=f"Bit length of the key modulus (even, >= {MIN_KEY_SIZE}).",
            format=int,
            default=1024,
        ),
    "public_key":
        HelpData(description="The RSA public key token."),
    "private_key":
        HelpData(description="The RSA private key token."),
    "message":
        HelpData(description="Message, ciphertext, or path to a file containing it. If Path start with `P:`"),
    "strict":
        HelpData(description="Fail instead of silently corrupting characters the key modulus cannot hold."),
}

needs = {
    "keygen": (),
    "encrypt": ("public_key", "message"),
    "decrypt": ("private_key", "message"),
}

corep = argparse.ArgumentParser(prog="textrsa")
corep.add_argument("--version", "-v", action="version", version=f"%(prog)s {textrsa.__version__}")
corep.add_argument("--non-interactive", "-n", action="store_true", help="Enable non-interactive mode")
corep.add_argument("--verbose", "-V", action="store_true", help="Log debug output to stderr")
commands = corep.add_subparsers(dest="subcommand", title="Subcommands")

keygen = commands.add_parser("keygen", help=help_dict["keygen"].description)
keygen.add_argument("--bits", "-b", type=help_dict["bits"].format, help=help_dict["bits"].description)
keygen.add_argument("--public-pem", type=pathlib.Path, help="Also export the public key as a PKCS1 PEM file.")
encrypt = commands.add_parser("encrypt", help=help_dict["encrypt"].description)
encrypt.add_argument("--public-key", "-p", help=help_dict["public_key"].description)
encrypt.add_argument("--message", "-m", help=help_dict["message"].description)
encrypt.add_argument("--strict", action="store_true", help=help_dict["strict"].description)
decrypt = commands.add_parser("decrypt", help=help_dict["decrypt"].description)
decrypt.add_argument("--private-key", "-P", help=help_dict["private_key"].description)
decrypt.add_argument("--message", "-m", help=help_dict["message"].description)
decrypt.add_argument("--strict", action="store_true", help=help_dict["strict"].description)


def checkmodes(arg: str, non_interactive: bool):
    helper_data = help_dict[arg]
    if non_interactive:
        if helper_data.default is None:
            raise IOError(f"Argument {arg} is missing and non-interactive mode is active.")
        return helper_data.default
    return helper_data


def choice_handler(arg: str, non_interactive: bool, prntr: typing.Callable = print):
    helper_data = checkmodes(arg, non_interactive)
    if not isinstance(helper_data, HelpData):
        return helper_data
    prntr(f"Please specify the {arg}!")
    prntr("Description: " + helper_data.description)
    for idx, choice in enumerate(helper_data.choices, 1):
        prntr(f"{idx}. {choice} - {help_dict[choice].description}")
    vald = {str(idx): choice for idx, choice in enumerate(helper_data.choices, 1)}
    vald.update({choice: choice for choice in helper_data.choices})
    while True:
        ch = input(f"{arg}: ").strip()
        if ch in vald:
            return vald[ch]
        prntr("Invalid choice. Please enter a valid option.")


def input_handler(arg: str, non_interactive: bool, prntr: typing.Callable = print):
    helper_data = checkmodes(arg, non_interactive)
    if not isinstance(helper_data, HelpData):
        return helper_data
    prntr(f"Please specify the {arg}!")
    prntr("Description: " + helper_data.description)
    if helper_data.default is not None:
        prntr(f"Default value: {helper_data.default}")
        prntr("To accept default just click enter. Otherwise specify value.")
    cls = helper_data.format
    while True:
        ch = input(f"{arg}: ")
        if not ch and helper_data.default is not None:
            return helper_data.default
        if ch == "":
            prntr("Please provide a value.")
            continue
        try:
            return cls(ch)
        except ValueError:
            prntr(f"We could not convert your value to {cls.__name__}.")


def bits_handler(bits: int | None, non_interactive: bool) -> int:
    """Ask for the bit length until it is an even number of at least MIN_KEY_SIZE."""
    if bits is None:
        bits = input_handler("bits", non_interactive)
    while bits < MIN_KEY_SIZE or bits % 2:
        print(f"Bit length must be an even number >= {MIN_KEY_SIZE}. Please enter a valid value.", file=sys.stderr)
        if non_interactive:
            sys.exit(2)
        bits = input_handler("bits", non_interactive)
    return bits


def check_message(mess: str) -> str:
    """Parse message for path-notice."""
    if mess.startswith("P:"):
        with open(mess[2:], "r", encoding="utf-8") as f:
            mess = f.read()
    return mess


def main(argv: list[str] | None = None):
    """Core Hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface)"""
    args = corep.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    def pspr(text: str):
        """Print only if not in non-interactive mode."""
        if not args.non_interactive:
            print(text)

    pspr("Welcome to RSA Encryption and Decryption!\n")
    strict = getattr(args, "strict", False)
    if not args.subcommand:
        args.subcommand = choice_handler("subcommand", args.non_interactive)
    try:
        for reqs in needs[args.subcommand]:
            if getattr(args, reqs, None) is None:
                setattr(args, reqs, input_handler(reqs, args.non_interactive))
        match args.subcommand:
            case "keygen":
                bits = bits_handler(getattr(args, "bits", None), args.non_interactive)
                tokens = generate_keys(bits)
                pspr("Public Key:")
                print(tokens.public_key)
                pspr("Private Key:")
                print(tokens.private_key)
                if getattr(args, "public_pem", None) is not None:
                    RSAPubKey.from_token(tokens.public_key).export(args.public_pem)
                    pspr(f"Public key exported to {args.public_pem}")
            case "encrypt":
                if not validate_token(args.public_key):
                    print("This Public Key is invalid. Generate another key.", file=sys.stderr)
                    sys.exit(1)
                ciph = asyncio.run(offload.encrypt(check_message(args.message), args.public_key, strict))
                pspr("Encrypted Message:")
                print(ciph)
            case "decrypt":
                clear = asyncio.run(offload.decrypt(check_message(args.message).strip(), args.private_key, strict))
                pspr("Decrypted Message:")
                print(clear)
    except textrsa.RSAError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        sys.exit(1)
    except OSError as exc:
        print(f"Could not proceed: {exc}", file=sys.stderr)
        sys.exit(1)
    pspr("\nGoodbye!")


if __name__ == "__main__":
    main()
