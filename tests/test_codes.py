from __future__ import annotations

import re

import pytest

from prizeboard.services.codes import CODE_ALPHABET, CodeRegistry, generate_prize_code
from prizeboard.services.errors import (
    AlreadyIssued,
    AlreadyUsed,
    CodeSpaceExhausted,
    Expired,
    NotFound,
    ValidationError,
)
from prizeboard.services.public_code import public_code_for


@pytest.fixture()
def registry(store, clock) -> CodeRegistry:
    return CodeRegistry(store, clock)


def test_generated_codes_use_unambiguous_alphabet():
    pattern = re.compile(rf"DRM-[{CODE_ALPHABET}]{{4}}")
    for _ in range(200):
        assert pattern.fullmatch(generate_prize_code())
    assert not set("01OI") & set(CODE_ALPHABET)
    assert len(CODE_ALPHABET) == 32


@pytest.mark.asyncio
async def test_issue_sets_seven_day_expiry(registry):
    prize = await registry.issue("P1", 1)

    assert prize.issued_at == "2025-03-01T12:00:00.000Z"
    assert prize.expires_at == "2025-03-08T12:00:00.000Z"
    assert prize.used_at is None
    assert (await registry.code_for("P1")).code == prize.code


@pytest.mark.asyncio
async def test_second_issue_for_player_returns_original_code(registry, store):
    prize = await registry.issue("P1", 1)

    with pytest.raises(AlreadyIssued) as excinfo:
        await registry.issue("P1", 2)

    assert excinfo.value.existing_code == prize.code
    assert excinfo.value.details == {"code": prize.code}
    assert len((await store.read())["prize_codes"]) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("player_id, rank", [("", 1), ("P1", 0), ("P1", True)])
async def test_issue_rejects_bad_input(registry, player_id, rank):
    with pytest.raises(ValidationError):
        await registry.issue(player_id, rank)


@pytest.mark.asyncio
async def test_issue_retries_past_collisions(store, clock):
    candidates = iter(["DRM-AAAA", "DRM-AAAA", "DRM-AAAA", "DRM-BBBB"])
    registry = CodeRegistry(store, clock, generator=lambda: next(candidates))

    first = await registry.issue("P1", 1)
    second = await registry.issue("P2", 2)

    assert (first.code, second.code) == ("DRM-AAAA", "DRM-BBBB")


@pytest.mark.asyncio
async def test_exhausted_retries_surface_error_and_store_nothing(store, clock):
    calls = []

    def always_same() -> str:
        calls.append(1)
        return "DRM-SAME"

    registry = CodeRegistry(store, clock, generator=always_same)
    await registry.issue("P1", 1)
    calls.clear()

    with pytest.raises(CodeSpaceExhausted):
        await registry.issue("P2", 2)

    assert len(calls) == 10
    codes = (await store.read())["prize_codes"]
    assert [row["player_id"] for row in codes] == ["P1"]


@pytest.mark.asyncio
async def test_verify_is_pure_lookup(registry, store):
    prize = await registry.issue("P1", 2)
    before = await store.read()

    status = await registry.verify(prize.code)

    assert status.status == "valid"
    assert (status.rank, status.player_id, status.expires_at) == (2, "P1", prize.expires_at)
    assert await store.read() == before
    assert (await registry.verify("DRM-NOPE")).status == "not_found"


@pytest.mark.asyncio
async def test_expiry_boundary(registry, clock):
    prize = await registry.issue("P1", 1)

    clock.advance(days=7)
    assert (await registry.verify(prize.code)).status == "valid"

    clock.advance(milliseconds=1)
    status = await registry.verify(prize.code)
    assert status.status == "expired"
    assert (status.rank, status.player_id) == (1, "P1")


@pytest.mark.asyncio
async def test_redeem_once(registry, clock):
    prize = await registry.issue("P1", 1)
    clock.advance(hours=1)

    redeemed = await registry.redeem(prize.code, "front-desk")

    assert redeemed.used_at == "2025-03-01T13:00:00.000Z"
    assert redeemed.used_by == "front-desk"
    with pytest.raises(AlreadyUsed):
        await registry.redeem(prize.code, "someone-else")

    status = await registry.verify(prize.code)
    assert (status.status, status.used_by) == ("used", "front-desk")


@pytest.mark.asyncio
async def test_used_takes_precedence_over_expired(registry, clock):
    prize = await registry.issue("P1", 1)
    await registry.redeem(prize.code, None)
    clock.advance(days=30)

    assert (await registry.verify(prize.code)).status == "used"
    with pytest.raises(AlreadyUsed):
        await registry.redeem(prize.code, None)


@pytest.mark.asyncio
async def test_redeem_unknown_and_expired(registry, clock, store):
    with pytest.raises(NotFound):
        await registry.redeem("DRM-NOPE", "desk")

    prize = await registry.issue("P1", 1)
    clock.advance(days=7, seconds=1)
    with pytest.raises(Expired):
        await registry.redeem(prize.code, "desk")

    row = (await store.read())["prize_codes"][0]
    assert row["used_at"] is None


@pytest.mark.asyncio
async def test_redeem_truncates_used_by(registry):
    prize = await registry.issue("P1", 1)

    redeemed = await registry.redeem(prize.code, "z" * 90)

    assert redeemed.used_by == "z" * 64


def test_public_code_is_deterministic_display_label():
    first = public_code_for("alice", "salt-a")

    assert first == public_code_for("alice", "salt-a")
    assert re.fullmatch(r"PLY-[23456789A-HJ-NP-Z]{4}", first)
    assert len({public_code_for(f"player-{n}", "salt-a") for n in range(20)}) > 1
