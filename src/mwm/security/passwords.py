"""Password hashing: argon2id via ``argon2-cffi``.

Hashes are PHC strings (``$argon2id$v=19$m=65536,t=2,p=1$...``) that
carry their own parameters, so changing the cost settings never breaks
verification of existing hashes.

Hashing is deliberately slow; the ``*_async`` variants run it in an
anyio worker thread so the event loop keeps serving other requests.

Usage::

    from mwm.security.passwords import hash_password, verify_password

    hashed = hash_password("my-password")
    ok = verify_password("my-password", hashed)
"""

import functools

import anyio
from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

DEFAULT_MEMORY_COST = 65536  # KiB
DEFAULT_TIME_COST = 2


@functools.cache
def get_hasher(
    memory_cost: int = DEFAULT_MEMORY_COST, time_cost: int = DEFAULT_TIME_COST
) -> PasswordHasher:
    return PasswordHasher(
        time_cost=time_cost,
        memory_cost=memory_cost,
        parallelism=1,
        type=Type.ID,
    )


def hash_password(password: str, hasher: PasswordHasher | None = None) -> str:
    """Hash *password* with argon2id.

    Raises:
        ValueError: *password* is empty.
    """
    if not password:
        msg = "Password must not be empty."
        raise ValueError(msg)
    return (hasher or get_hasher()).hash(password)


def verify_password(password: str, phc_hash: str, hasher: PasswordHasher | None = None) -> bool:
    """True if *password* matches *phc_hash*. Never raises on a mismatch or a bad hash."""
    if not password or not phc_hash:
        return False
    try:
        return (hasher or get_hasher()).verify(phc_hash, password)
    except (VerificationError, InvalidHashError):
        return False


async def hash_password_async(password: str, hasher: PasswordHasher | None = None) -> str:
    return await anyio.to_thread.run_sync(hash_password, password, hasher)


async def verify_password_async(
    password: str, phc_hash: str, hasher: PasswordHasher | None = None
) -> bool:
    return await anyio.to_thread.run_sync(verify_password, password, phc_hash, hasher)


@functools.cache
def _dummy_hash(hasher: PasswordHasher) -> str:
    return hasher.hash("mwm-timing-equalizer")


async def burn_verification(password: str, hasher: PasswordHasher | None = None) -> None:
    """Spend the time of a real verification when there is no hash to check.

    Used when the email is unknown, so the response time does not reveal
    whether an account exists.
    """
    hasher = hasher or get_hasher()
    await verify_password_async(password or "x", _dummy_hash(hasher), hasher)
