"""Runs encryption and decryption off the caller's thread, one worker process per call.

Exponentiation with large keys is slow enough to freeze an interactive front end, so every call is shipped to a
process of its own. The task travels by value (pickled), the worker sends back exactly one result and exits; nothing
is pooled or reused between calls and nothing is shared. Calls complete in no particular order.

There is neither timeout nor cancellation. Cancelling the awaiting coroutine only abandons the result; the worker
still runs to completion.

Typical usage example:

    tokens = generate_keys(1024)
    c = await encrypt("Hi there!", tokens.public_key)
    r = await decrypt(c, tokens.private_key)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import asyncio
from concurrent.futures import ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
import logging
import typing

from textrsa.errors import RSAError
from textrsa.errors import TaskFault
from textrsa.rsa import RSAPrivKey
from textrsa.rsa import RSAPubKey

_log = logging.getLogger(__name__)


class OffloadTask(typing.NamedTuple):
    operation: typing.Literal["encrypt", "decrypt"]
    payload: str
    key: str
    strict: bool = False


def execute(task: OffloadTask) -> str:
    """Worker-side body of an offloaded call."""
    if task.operation == "encrypt":
        return RSAPubKey.from_token(task.key).encrypt(task.payload, task.strict)
    if task.operation == "decrypt":
        return RSAPrivKey.from_token(task.key).decrypt(task.payload, task.strict)
    raise ValueError(f"Unknown operation {task.operation!r}.")


async def run_task(task: OffloadTask, worker: typing.Callable[[OffloadTask], str] = execute) -> str:
    """Run one task in a fresh worker process and await its single result.

    Args:
        task: The task to run.
        worker: The picklable callable executed in the worker. Defaults to `execute`.

    Returns:
        Whatever the worker returned.

    Raises:
        RSAError: Library errors raised by the worker (bad token, bad ciphertext) are re-raised unchanged.
        TaskFault: If the worker process died, or failed with anything else.
    """
    loop = asyncio.get_running_loop()
    executor = ProcessPoolExecutor(max_workers=1)
    _log.debug("Dispatching %s task (%d chars).", task.operation, len(task.payload))
    try:
        return await loop.run_in_executor(executor, worker, task)
    except BrokenProcessPool as exc:
        raise TaskFault(f"Worker for {task.operation} stopped abnormally.") from exc
    except RSAError:
        raise
    except Exception as exc:
        raise TaskFault(f"Worker for {task.operation} failed: {exc}") from exc
    finally:
        executor.shutdown(wait=False)


async def encrypt(message: str, public_key: str, strict: bool = False) -> str:
    """Encrypt `message` with the public key token in a worker process.

    With `strict`, a modulus too small for the message raises RoundTripMismatch instead of corrupting it.

    Returns:
        The ciphertext token.
    """
    return await run_task(OffloadTask("encrypt", message, public_key, strict))


async def decrypt(message: str, private_key: str, strict: bool = False) -> str:
    """Decrypt the ciphertext token `message` with the private key token in a worker process.

    Returns:
        The cleartext.
    """
    return await run_task(OffloadTask("decrypt", message, private_key, strict))
