"""Tests for QR join token issuance, checking and consumption."""

import asyncio
import hashlib
import re
from datetime import timedelta
from uuid import uuid4

import pytest

from app.core import qr_tokens
from app.core.qr_tokens import (
    QRTokenConfig,
    QRTokenConfigError,
    QRTokenManager,
    TokenGenerationError,
    is_full_token,
    is_short_code,
)
from app.models.job import JobStatus


def short_codes(*codes):
    """Replacement for generate_short_code that hands out ``codes`` in order."""
    remaining = iter(codes)
    return lambda: next(remaining)


# Issuance


@pytest.mark.asyncio
async def test_issue_token_format(token_manager, memory_store, qr_config):
    job_id = memory_store.add_job()

    issued = await token_manager.issue_token(job_id)

    random_part, auth_code = issued.token.split(".")
    assert re.fullmatch(r"[0-9a-f]{32}", random_part)
    assert re.fullmatch(r"[0-9a-f]{64}", auth_code)
    expected = hashlib.sha256(f"{job_id}:{random_part}:{qr_config.secret}".encode()).hexdigest()
    assert auth_code == expected
    assert str(job_id) not in issued.token

    assert re.fullmatch(r"\d{6}", issued.short_code)
    assert 100000 <= int(issued.short_code) <= 999999


@pytest.mark.asyncio
async def test_issue_token_persists_unused_record(token_manager, memory_store):
    job_id = memory_store.add_job()

    issued = await token_manager.issue_token(job_id)

    snapshot = await memory_store.find_by_token(issued.token)
    assert snapshot.record.job_id == job_id
    assert snapshot.record.used is False
    assert snapshot.record.consumed_by is None
    assert snapshot.record.consumed_at is None


@pytest.mark.asyncio
async def test_repeated_issues_are_distinct_and_expire_in_fifteen_minutes(
    token_manager, memory_store, clock
):
    job_id = memory_store.add_job()

    issued = [await token_manager.issue_token(job_id) for _ in range(25)]

    assert len({item.token for item in issued}) == 25
    assert len({item.token.split(".")[0] for item in issued}) == 25
    assert len({item.short_code for item in issued}) == 25
    for item in issued:
        remaining = item.expires_at - clock.now
        assert timedelta(minutes=14.9) <= remaining <= timedelta(minutes=15.1)


@pytest.mark.asyncio
async def test_short_code_collision_is_retried(token_manager, memory_store, monkeypatch):
    job_id = memory_store.add_job()
    monkeypatch.setattr(qr_tokens, "generate_short_code", short_codes("111111", "111111", "222222"))

    first = await token_manager.issue_token(job_id)
    second = await token_manager.issue_token(job_id)

    assert first.short_code == "111111"
    assert second.short_code == "222222"


@pytest.mark.asyncio
async def test_short_code_retries_exhausted(memory_store, clock, monkeypatch):
    manager = QRTokenManager(
        memory_store, QRTokenConfig(secret="s", max_short_code_attempts=3), clock=clock
    )
    job_id = memory_store.add_job()
    monkeypatch.setattr(qr_tokens, "generate_short_code", lambda: "333333")

    await manager.issue_token(job_id)
    with pytest.raises(TokenGenerationError):
        await manager.issue_token(job_id)


def test_missing_secret_is_a_configuration_error(memory_store):
    with pytest.raises(QRTokenConfigError):
        QRTokenManager(memory_store, QRTokenConfig(secret=""))


def test_config_from_settings():
    class FakeSettings:
        QR_TOKEN_SECRET = "abc"
        QR_TOKEN_TTL_MINUTES = 5
        QR_SHORT_CODE_MAX_ATTEMPTS = 4

    config = QRTokenConfig.from_settings(FakeSettings)

    assert config == QRTokenConfig(secret="abc", ttl=timedelta(minutes=5), max_short_code_attempts=4)


@pytest.mark.asyncio
async def test_verify_signature(token_manager, memory_store):
    job_id = memory_store.add_job()
    issued = await token_manager.issue_token(job_id)

    assert token_manager.verify_signature(job_id, issued.token)
    assert not token_manager.verify_signature(uuid4(), issued.token)
    tampered = issued.token[:-1] + ("1" if issued.token.endswith("0") else "0")
    assert not token_manager.verify_signature(job_id, tampered)
    assert not token_manager.verify_signature(job_id, issued.short_code)


def test_identifier_formats():
    assert is_short_code("123456")
    assert not is_short_code("12345")
    assert not is_short_code("1234567")
    assert not is_short_code("12345a")
    assert is_full_token("a" * 32 + "." + "b" * 64)
    assert not is_full_token("a" * 32 + "b" * 64)
    assert not is_full_token("A" * 32 + "." + "b" * 64)


# Checking


@pytest.mark.asyncio
async def test_check_token_valid_by_token_and_short_code(token_manager, memory_store):
    job_id = memory_store.add_job()
    issued = await token_manager.issue_token(job_id)

    by_token = await token_manager.check_token(issued.token)
    by_code = await token_manager.check_token(issued.short_code)

    assert by_token.valid is True
    assert by_token.job_id == job_id
    assert by_token.reason is None
    assert by_code == by_token


@pytest.mark.asyncio
async def test_short_code_and_token_resolve_to_same_record(token_manager, memory_store, monkeypatch):
    job_id = memory_store.add_job()
    monkeypatch.setattr(qr_tokens, "generate_short_code", short_codes("123456"))
    issued = await token_manager.issue_token(job_id)

    by_token = await memory_store.find_by_token(issued.token)
    by_code = await memory_store.find_by_short_code("123456")

    assert by_token.record.id == by_code.record.id
    assert await token_manager.check_token("123456") == await token_manager.check_token(issued.token)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "identifier",
    ["", "nope", "000000", "a" * 32 + "." + "b" * 64, "' OR '1'='1", "123456; DROP TABLE qr_tokens;"],
)
async def test_check_token_unknown_identifier(token_manager, identifier):
    result = await token_manager.check_token(identifier)

    assert result.valid is False
    assert result.reason == "Invalid token"
    assert result.job_id is None


@pytest.mark.asyncio
async def test_check_token_expired(token_manager, memory_store, clock):
    job_id = memory_store.add_job()
    issued = await token_manager.issue_token(job_id)

    clock.advance(minutes=15)

    result = await token_manager.check_token(issued.token)
    assert result.valid is False
    assert result.reason == "Token expired"


@pytest.mark.asyncio
async def test_check_token_just_before_expiry(token_manager, memory_store, clock):
    job_id = memory_store.add_job()
    issued = await token_manager.issue_token(job_id)

    clock.advance(minutes=14, seconds=59)

    assert (await token_manager.check_token(issued.token)).valid is True


@pytest.mark.asyncio
async def test_check_token_used(token_manager, memory_store):
    job_id = memory_store.add_job()
    issued = await token_manager.issue_token(job_id)
    await token_manager.consume_token(issued.token, uuid4())

    result = await token_manager.check_token(issued.token)
    assert result.valid is False
    assert result.reason == "Token already used"


@pytest.mark.asyncio
async def test_check_token_job_already_has_helper(token_manager, memory_store):
    job_id = memory_store.add_job()
    first = await token_manager.issue_token(job_id)
    second = await token_manager.issue_token(job_id)
    await token_manager.consume_token(first.token, uuid4())

    result = await token_manager.check_token(second.token)
    assert result.valid is False
    assert result.reason == "Job already has a Helper"


@pytest.mark.asyncio
async def test_check_token_job_not_open(token_manager, memory_store):
    job_id = memory_store.add_job()
    issued = await token_manager.issue_token(job_id)
    memory_store.set_job_status(job_id, JobStatus.CANCELLED.value)

    result = await token_manager.check_token(issued.token)
    assert result.valid is False
    assert result.reason == "Job is not available"


@pytest.mark.asyncio
async def test_check_reasons_follow_priority(token_manager, memory_store, clock):
    """Expired wins over used, which wins over the job state checks."""
    job_id = memory_store.add_job()
    issued = await token_manager.issue_token(job_id)
    await token_manager.consume_token(issued.token, uuid4())

    # used + job assigned + job accepted
    assert (await token_manager.check_token(issued.token)).reason == "Token already used"

    clock.advance(minutes=16)
    assert (await token_manager.check_token(issued.token)).reason == "Token expired"


@pytest.mark.asyncio
async def test_check_token_never_consumes(token_manager, memory_store):
    job_id = memory_store.add_job()
    issued = await token_manager.issue_token(job_id)
    helper_id = uuid4()

    for _ in range(5):
        assert (await token_manager.check_token(issued.token)).valid is True
        assert (await token_manager.check_token(issued.short_code)).valid is True

    snapshot = await memory_store.find_by_token(issued.token)
    assert snapshot.record.used is False
    assert memory_store.get_assignment(job_id) is None

    assignment = await token_manager.consume_token(issued.token, helper_id)
    assert assignment is not None


# Consumption


@pytest.mark.asyncio
async def test_join_scenario(token_manager, memory_store, clock):
    job_id = memory_store.add_job()
    helper_a, helper_b = uuid4(), uuid4()

    issued = await token_manager.issue_token(job_id)
    check = await token_manager.check_token(issued.token)
    assert check.valid is True
    assert check.job_id == job_id

    assignment = await token_manager.consume_token(issued.token, helper_a)
    assert assignment.job_id == job_id
    assert assignment.helper_id == helper_a
    assert assignment.created_at == clock.now
    assert (await memory_store.get_job(job_id)).status == JobStatus.ACCEPTED.value

    record = (await memory_store.find_by_token(issued.token)).record
    assert record.used is True
    assert record.consumed_by == helper_a
    assert record.consumed_at == clock.now

    assert await token_manager.consume_token(issued.token, helper_b) is None


@pytest.mark.asyncio
async def test_consume_by_short_code(token_manager, memory_store):
    job_id = memory_store.add_job()
    issued = await token_manager.issue_token(job_id)
    helper_id = uuid4()

    assignment = await token_manager.consume_token(issued.short_code, helper_id)

    assert assignment.job_id == job_id
    assert assignment.helper_id == helper_id


@pytest.mark.asyncio
async def test_consume_used_token_keeps_existing_assignment(token_manager, memory_store):
    job_id = memory_store.add_job()
    issued = await token_manager.issue_token(job_id)
    winner = await token_manager.consume_token(issued.token, uuid4())

    assert await token_manager.consume_token(issued.token, uuid4()) is None
    assert await token_manager.consume_token(issued.short_code, uuid4()) is None
    assert memory_store.get_assignment(job_id) == winner


@pytest.mark.asyncio
async def test_consume_expired_token(token_manager, memory_store, clock):
    job_id = memory_store.add_job()
    issued = await token_manager.issue_token(job_id)

    clock.advance(minutes=20)

    assert await token_manager.consume_token(issued.token, uuid4()) is None
    assert memory_store.get_assignment(job_id) is None
    assert (await memory_store.get_job(job_id)).status == JobStatus.OPEN.value


@pytest.mark.asyncio
async def test_consume_unknown_token(token_manager):
    assert await token_manager.consume_token("999999", uuid4()) is None
    assert await token_manager.consume_token("garbage", uuid4()) is None


@pytest.mark.asyncio
async def test_consume_for_job_that_is_not_open(token_manager, memory_store):
    job_id = memory_store.add_job(status=JobStatus.CANCELLED.value)
    issued = await token_manager.issue_token(job_id)

    assert await token_manager.consume_token(issued.token, uuid4()) is None
    assert memory_store.get_assignment(job_id) is None


@pytest.mark.asyncio
async def test_consume_rejects_token_minted_with_another_secret(memory_store, clock):
    job_id = memory_store.add_job()
    foreign = QRTokenManager(memory_store, QRTokenConfig(secret="someone-else"), clock=clock)
    issued = await foreign.issue_token(job_id)

    manager = QRTokenManager(memory_store, QRTokenConfig(secret="ours"), clock=clock)

    for identifier in (issued.token, issued.short_code):
        check = await manager.check_token(identifier)
        assert check.valid is False
        assert check.reason == "Invalid token"
        assert check.job_id is None

    assert await manager.consume_token(issued.token, uuid4()) is None
    assert memory_store.get_assignment(job_id) is None
    assert (await memory_store.find_by_token(issued.token)).record.used is False


@pytest.mark.asyncio
async def test_round_trip_resolves_to_issuing_job(token_manager, memory_store):
    job_ids = [memory_store.add_job() for _ in range(3)]
    issued = {job_id: await token_manager.issue_token(job_id) for job_id in job_ids}

    for job_id, token in issued.items():
        assert (await token_manager.check_token(token.token)).job_id == job_id
        assignment = await token_manager.consume_token(token.token, uuid4())
        assert assignment.job_id == job_id


# Concurrency


@pytest.mark.asyncio
async def test_concurrent_consumption_of_two_tokens_for_one_job(token_manager, memory_store):
    job_id = memory_store.add_job()
    first = await token_manager.issue_token(job_id)
    second = await token_manager.issue_token(job_id)
    helper_a, helper_b = uuid4(), uuid4()

    results = await asyncio.gather(
        token_manager.consume_token(first.token, helper_a),
        token_manager.consume_token(second.token, helper_b),
    )

    winners = [result for result in results if result is not None]
    assert len(winners) == 1
    assert results.count(None) == 1
    assert memory_store.get_assignment(job_id) == winners[0]
    assert (await memory_store.get_job(job_id)).status == JobStatus.ACCEPTED.value


@pytest.mark.asyncio
async def test_concurrent_consumption_of_the_same_token(token_manager, memory_store):
    job_id = memory_store.add_job()
    issued = await token_manager.issue_token(job_id)

    results = await asyncio.gather(
        *(token_manager.consume_token(issued.token, uuid4()) for _ in range(10))
    )

    winners = [result for result in results if result is not None]
    assert len(winners) == 1
    assert memory_store.get_assignment(job_id) == winners[0]


@pytest.mark.asyncio
async def test_store_consume_refuses_when_job_left_open(memory_store, clock):
    """The store re-checks under its lock even if the caller's snapshot was stale."""
    job_id = memory_store.add_job()
    manager = QRTokenManager(memory_store, QRTokenConfig(secret="s"), clock=clock)
    issued = await manager.issue_token(job_id)
    snapshot = await memory_store.find_by_token(issued.token)

    memory_store.set_job_status(job_id, JobStatus.CANCELLED.value)

    result = await memory_store.consume(
        token_id=snapshot.record.id,
        job_id=job_id,
        helper_id=uuid4(),
        from_status=JobStatus.OPEN.value,
        to_status=JobStatus.ACCEPTED.value,
        now=clock.now,
    )
    assert result is None
    assert memory_store.get_token(snapshot.record.id).used is False


# Housekeeping


@pytest.mark.asyncio
async def test_cleanup_expired(token_manager, memory_store, clock):
    job_id = memory_store.add_job()
    old = await token_manager.issue_token(job_id)
    clock.advance(minutes=10)
    fresh = await token_manager.issue_token(job_id)
    clock.advance(minutes=6)

    deleted = await token_manager.cleanup_expired()

    assert deleted == 1
    assert (await token_manager.check_token(old.token)).reason == "Invalid token"
    assert (await token_manager.check_token(fresh.token)).valid is True


@pytest.mark.asyncio
async def test_lookup_racing_cleanup_finds_nothing(token_manager, memory_store, clock):
    """A token deleted while a lookup is in flight reads as missing."""
    job_id = memory_store.add_job()
    issued = await token_manager.issue_token(job_id)
    clock.advance(minutes=20)

    snapshot, deleted = await asyncio.gather(
        memory_store.find_by_token(issued.token),
        token_manager.cleanup_expired(),
    )

    assert snapshot is None
    assert deleted == 1
