"""Tests for mwm.security.passwords: argon2id hashing."""

import pytest

from mwm.security.passwords import (
    get_hasher,
    hash_password,
    hash_password_async,
    verify_password,
    verify_password_async,
)

FAST = get_hasher(1024, 1)


class TestHashPassword:
    def test_argon2id_phc_string(self) -> None:
        assert hash_password("secret123", FAST).startswith("$argon2id$")

    def test_salted(self) -> None:
        assert hash_password("secret123", FAST) != hash_password("secret123", FAST)

    def test_default_parameters(self) -> None:
        hasher = get_hasher()
        assert hasher.memory_cost == 65536
        assert hasher.time_cost == 2
        assert hasher.parallelism == 1

    def test_empty_password_rejected(self) -> None:
        with pytest.raises(ValueError, match="must not be empty"):
            hash_password("", FAST)


class TestVerifyPassword:
    def test_round_trip(self) -> None:
        hashed = hash_password("secret123", FAST)
        assert verify_password("secret123", hashed, FAST)
        assert not verify_password("wrong", hashed, FAST)

    def test_garbage_hash_is_false(self) -> None:
        assert not verify_password("secret123", "not-a-hash", FAST)

    def test_empty_inputs_are_false(self) -> None:
        assert not verify_password("", "whatever", FAST)
        assert not verify_password("secret123", "", FAST)

    def test_hash_carries_its_parameters(self) -> None:
        hashed = hash_password("secret123", FAST)
        assert verify_password("secret123", hashed, get_hasher())

    async def test_async_variants(self) -> None:
        hashed = await hash_password_async("secret123", FAST)
        assert await verify_password_async("secret123", hashed, FAST)
        assert not await verify_password_async("nope", hashed, FAST)
