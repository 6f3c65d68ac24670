import asyncio
import re

import fakeredis
import pytest

from etherworld_auth.core.otp_store import InMemoryOTPStore, RedisOTPStore
from etherworld_auth.models.enums import OTPVerifyStatus
from etherworld_auth.services.otp_service import OTPService


@pytest.fixture
def store():
    return InMemoryOTPStore()


@pytest.fixture
def service(store, clock):
    return OTPService(store=store, clock=clock, ttl_seconds=600, max_attempts=3)


def _wrong(code):
    return "000000" if code != "000000" else "111111"


@pytest.mark.unit
def test_issued_codes_are_six_digits(service):
    for _ in range(200):
        assert re.fullmatch(r"[0-9]{6}", asyncio.run(service.issue("reader@etherworld.co")))


@pytest.mark.unit
def test_issue_stores_normalized_record(service, store, clock):
    code = asyncio.run(service.issue("  Reader@EtherWorld.co "))

    record = store.records["reader@etherworld.co"]
    assert record.code == code
    assert record.attempts == 0
    assert (record.expires_at - clock.now()).total_seconds() == 600


@pytest.mark.unit
def test_reissue_replaces_previous_challenge(service, store):
    first = asyncio.run(service.issue("a@b.com"))
    store.records["a@b.com"].attempts = 2
    second = asyncio.run(service.issue("a@b.com"))

    assert len(store) == 1
    assert store.records["a@b.com"].attempts == 0
    if first != second:
        assert asyncio.run(service.verify("a@b.com", first)) is OTPVerifyStatus.INVALID_CODE
    assert asyncio.run(service.verify("a@b.com", second)) is OTPVerifyStatus.SUCCESS


@pytest.mark.unit
def test_verify_without_challenge(service):
    assert asyncio.run(service.verify("a@b.com", "123456")) is OTPVerifyStatus.NO_ACTIVE_CHALLENGE


@pytest.mark.unit
def test_code_valid_until_just_before_expiry(service, clock):
    code = asyncio.run(service.issue("a@b.com"))
    clock.advance(minutes=9, seconds=59)
    assert asyncio.run(service.verify("a@b.com", code)) is OTPVerifyStatus.SUCCESS


@pytest.mark.unit
def test_expired_code_fails_and_is_removed(service, store, clock):
    code = asyncio.run(service.issue("a@b.com"))
    clock.advance(minutes=10)

    assert asyncio.run(service.verify("a@b.com", code)) is OTPVerifyStatus.EXPIRED
    assert "a@b.com" not in store.records


@pytest.mark.unit
def test_wrong_code_counts_attempt_and_keeps_record(service, store):
    code = asyncio.run(service.issue("a@b.com"))

    assert asyncio.run(service.verify("a@b.com", _wrong(code))) is OTPVerifyStatus.INVALID_CODE
    assert store.records["a@b.com"].attempts == 1


@pytest.mark.unit
def test_attempt_budget(service, store):
    code = asyncio.run(service.issue("a@b.com"))
    for _ in range(3):
        assert asyncio.run(service.verify("a@b.com", _wrong(code))) is OTPVerifyStatus.INVALID_CODE

    assert asyncio.run(service.verify("a@b.com", code)) is OTPVerifyStatus.ATTEMPTS_EXHAUSTED
    assert "a@b.com" not in store.records

    fresh = asyncio.run(service.issue("a@b.com"))
    assert asyncio.run(service.verify("a@b.com", fresh)) is OTPVerifyStatus.SUCCESS


@pytest.mark.unit
def test_success_consumes_challenge(service):
    code = asyncio.run(service.issue("a@b.com"))

    assert asyncio.run(service.verify("a@b.com", code)) is OTPVerifyStatus.SUCCESS
    assert asyncio.run(service.verify("a@b.com", code)) is OTPVerifyStatus.NO_ACTIVE_CHALLENGE


@pytest.mark.unit
def test_comparison_is_exact(service):
    code = asyncio.run(service.issue("a@b.com"))

    assert asyncio.run(service.verify("a@b.com", f" {code}")) is OTPVerifyStatus.INVALID_CODE
    assert asyncio.run(service.verify("a@b.com", code[:5])) is OTPVerifyStatus.INVALID_CODE


@pytest.mark.unit
def test_verify_matches_email_case_insensitively(service):
    code = asyncio.run(service.issue("A@B.com"))
    assert asyncio.run(service.verify("a@b.COM", code)) is OTPVerifyStatus.SUCCESS


@pytest.mark.unit
def test_concurrent_wrong_guesses_cannot_exceed_budget(service):
    async def scenario():
        code = await service.issue("a@b.com")
        return await asyncio.gather(*(service.verify("a@b.com", _wrong(code)) for _ in range(10)))

    results = asyncio.run(scenario())
    assert results.count(OTPVerifyStatus.INVALID_CODE) == 3
    assert results.count(OTPVerifyStatus.ATTEMPTS_EXHAUSTED) == 1
    assert results.count(OTPVerifyStatus.NO_ACTIVE_CHALLENGE) == 6
    assert len(service._locks) == 0


@pytest.mark.unit
def test_sweep_removes_only_expired(service, store, clock):
    asyncio.run(service.issue("old@b.com"))
    clock.advance(minutes=5)
    asyncio.run(service.issue("new@b.com"))
    clock.advance(minutes=5)

    assert asyncio.run(service.sweep_expired()) == 1
    assert list(store.records) == ["new@b.com"]


@pytest.mark.unit
def test_status_messages():
    assert OTPVerifyStatus.NO_ACTIVE_CHALLENGE.message == "No OTP found. Please request a new code."
    assert OTPVerifyStatus.EXPIRED.message == "OTP expired. Please request a new code."
    assert OTPVerifyStatus.ATTEMPTS_EXHAUSTED.message == "Too many failed attempts. Please request a new code."
    assert OTPVerifyStatus.INVALID_CODE.message == "Invalid verification code."
    assert OTPVerifyStatus.SUCCESS.ok and not OTPVerifyStatus.EXPIRED.ok


def _shared_redis_scenario(clock, body):
    """Run ``body(first, second, redis)`` with two services sharing one fake Redis server."""
    async def main():
        server = fakeredis.FakeServer()
        clients = [fakeredis.FakeAsyncRedis(server=server) for _ in range(3)]
        first, second = (
            OTPService(RedisOTPStore(client, ttl_seconds=600), clock=clock, ttl_seconds=600, max_attempts=3)
            for client in clients[:2]
        )
        try:
            return await body(first, second, clients[2])
        finally:
            for client in clients:
                await client.aclose()

    return asyncio.run(main())


@pytest.mark.unit
def test_instances_sharing_redis_cannot_exceed_budget(clock):
    async def body(first, second, redis):
        code = await first.issue("a@b.com")
        guesses = [svc.verify("a@b.com", _wrong(code)) for svc in (first, second) * 5]
        results = await asyncio.gather(*guesses)
        return results, await redis.exists("otp:code:a@b.com")

    results, remaining = _shared_redis_scenario(clock, body)
    assert results.count(OTPVerifyStatus.INVALID_CODE) == 3
    assert results.count(OTPVerifyStatus.ATTEMPTS_EXHAUSTED) >= 1
    assert set(results) <= {
        OTPVerifyStatus.INVALID_CODE,
        OTPVerifyStatus.ATTEMPTS_EXHAUSTED,
        OTPVerifyStatus.NO_ACTIVE_CHALLENGE,
    }
    assert remaining == 0


@pytest.mark.unit
def test_instances_sharing_redis_consume_code_once(clock):
    async def body(first, second, redis):
        code = await first.issue("a@b.com")
        return await asyncio.gather(first.verify("a@b.com", code), second.verify("a@b.com", code))

    results = _shared_redis_scenario(clock, body)
    assert sorted(results) == [OTPVerifyStatus.NO_ACTIVE_CHALLENGE, OTPVerifyStatus.SUCCESS]


@pytest.mark.unit
def test_verify_rereads_after_reissue_by_another_instance(clock, mocker):
    mocker.patch(
        "etherworld_auth.services.otp_service.generate_otp",
        side_effect=["111111", "222222"],
    )

    async def body(first, second, redis):
        await first.issue("a@b.com")
        stale = await first.store.get("a@b.com")
        await second.issue("a@b.com")
        # a write based on the first challenge must not touch the second one
        assert await first.store.increment_attempts(stale, 3) is None
        return await first.verify("a@b.com", "222222")

    assert _shared_redis_scenario(clock, body) is OTPVerifyStatus.SUCCESS
