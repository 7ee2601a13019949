"""Tests for the verification pipeline and judgment parsing."""
import json
import uuid

import httpx
import pytest

from tests.conftest import completion, make_oracle, request_payload
from veritas.ledger.chain import ChainLinker
from veritas.ledger.models import VerificationConfidence, VerificationStatus
from veritas.ledger.schemas import StatementCreate
from veritas.shared.exceptions import (
    NotFoundError,
    OracleError,
    OracleMalformedResponseError,
    OracleNotConfiguredError,
    OracleUnavailableError,
    ValidationError,
)
from veritas.verification.parser import parse_judgment
from veritas.verification.schemas import VerifyRequest
from veritas.verification.service import VerificationService

FULL_JUDGMENT = {
    "status": "DISPUTED",
    "confidence": "MEDIUM",
    "keyFacts": ["The wall is about 21,000 km long"],
    "issues": ["Not visible to the naked eye from the Moon"],
    "context": "Astronauts have repeatedly reported this.",
    "recommendation": "Do not trust",
    "reasoning": "The wall is too narrow.",
}


# ---------------------------------------------------------------------------
# parse_judgment
# ---------------------------------------------------------------------------

class TestParseJudgment:
    def test_not_json_degrades(self):
        judgment = parse_judgment("not json")
        assert judgment.kind == "degraded"
        assert judgment.result.status == VerificationStatus.UNVERIFIED
        assert judgment.result.confidence == VerificationConfidence.LOW
        assert judgment.result.issues == ["AI response parsing failed"]
        assert judgment.result.key_facts == []
        assert judgment.result.reasoning == "not json"

    def test_missing_fields_get_defaults(self):
        judgment = parse_judgment('{"status":"VERIFIED","confidence":"HIGH"}')
        result = judgment.result
        assert judgment.kind == "ok"
        assert result.status == VerificationStatus.VERIFIED
        assert result.confidence == VerificationConfidence.HIGH
        assert result.key_facts == []
        assert result.issues == []
        assert result.context == ""
        assert result.recommendation == "Not provided"
        assert result.reasoning == "Not provided"
        assert set(judgment.missing_fields) == {"keyFacts", "issues", "context", "recommendation", "reasoning"}

    def test_complete_judgment_passes_through(self):
        judgment = parse_judgment(json.dumps(FULL_JUDGMENT))
        assert judgment.kind == "ok"
        assert judgment.missing_fields == []
        assert judgment.result.status == VerificationStatus.DISPUTED
        assert judgment.result.key_facts == FULL_JUDGMENT["keyFacts"]
        assert judgment.result.reasoning == "The wall is too narrow."

    def test_code_fence_is_stripped(self):
        judgment = parse_judgment("```json\n" + json.dumps(FULL_JUDGMENT) + "\n```")
        assert judgment.kind == "ok"
        assert judgment.result.status == VerificationStatus.DISPUTED

    def test_enum_values_are_case_insensitive(self):
        judgment = parse_judgment('{"status":"verified","confidence":"medium"}')
        assert judgment.result.status == VerificationStatus.VERIFIED
        assert judgment.result.confidence == VerificationConfidence.MEDIUM

    def test_unknown_enum_value_falls_back_to_lowest(self):
        judgment = parse_judgment('{"status":"PROBABLY","confidence":"VERY HIGH","reasoning":"x"}')
        assert judgment.result.status == VerificationStatus.UNVERIFIED
        assert judgment.result.confidence == VerificationConfidence.LOW
        assert "status" in judgment.missing_fields

    def test_json_without_expected_keys_degrades(self):
        assert parse_judgment('["VERIFIED"]').kind == "degraded"
        assert parse_judgment('{"verdict": "true"}').kind == "degraded"


# ---------------------------------------------------------------------------
# VerificationService
# ---------------------------------------------------------------------------

class TestVerificationService:
    @pytest.mark.asyncio
    async def test_sends_low_temperature_bounded_request(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured.update(request_payload(request))
            captured["auth"] = request.headers["authorization"]
            return completion(json.dumps(FULL_JUDGMENT))

        service = VerificationService(make_oracle(handler))
        response = await service.verify(VerifyRequest(statement="The wall is visible from the Moon"))

        assert captured["temperature"] == 0.1
        assert captured["max_tokens"] == 1000
        assert captured["auth"] == "Bearer test-key"
        assert [m["role"] for m in captured["messages"]] == ["system", "user"]
        assert "The wall is visible from the Moon" in captured["messages"][1]["content"]
        assert response.speaker == "Unknown"
        assert response.verification.status == VerificationStatus.DISPUTED
        assert response.timestamp is not None

    @pytest.mark.asyncio
    async def test_degraded_content_is_not_an_error(self):
        service = VerificationService(make_oracle(lambda r: completion("I think it's true.")))
        response = await service.verify(VerifyRequest(statement="Sky is blue", speaker="Alice"))
        assert response.verification.issues == ["AI response parsing failed"]
        assert response.verification.reasoning == "I think it's true."

    @pytest.mark.asyncio
    async def test_network_failure_raises_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = VerificationService(make_oracle(handler))
        with pytest.raises(OracleUnavailableError):
            await service.verify(VerifyRequest(statement="Sky is blue"))

    @pytest.mark.asyncio
    async def test_timeout_is_treated_as_unavailable(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        service = VerificationService(make_oracle(handler))
        with pytest.raises(OracleUnavailableError):
            await service.verify(VerifyRequest(statement="Sky is blue"))

    @pytest.mark.asyncio
    async def test_error_status_raises_oracle_error(self):
        service = VerificationService(
            make_oracle(lambda r: httpx.Response(429, json={"message": "rate limited"}))
        )
        with pytest.raises(OracleError) as exc_info:
            await service.verify(VerifyRequest(statement="Sky is blue"))
        assert exc_info.value.status == 429
        assert exc_info.value.body == {"message": "rate limited"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(200, text="<html>gateway</html>"),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json={"choices": [{"message": {}}]}),
    ])
    async def test_bad_envelope_raises_malformed(self, response):
        service = VerificationService(make_oracle(lambda r: response))
        with pytest.raises(OracleMalformedResponseError):
            await service.verify(VerifyRequest(statement="Sky is blue"))

    @pytest.mark.asyncio
    async def test_undecodable_body_raises_malformed(self):
        service = VerificationService(make_oracle(lambda r: httpx.Response(
            200, headers={"content-encoding": "gzip"}, stream=httpx.ByteStream(b"not gzip")
        )))
        with pytest.raises(OracleMalformedResponseError):
            await service.verify(VerifyRequest(statement="Sky is blue"))

    @pytest.mark.asyncio
    async def test_unconfigured_oracle(self):
        with pytest.raises(OracleNotConfiguredError):
            await VerificationService(None).verify(VerifyRequest(statement="Sky is blue"))

    @pytest.mark.asyncio
    async def test_blank_statement_is_rejected(self):
        service = VerificationService(make_oracle(lambda r: completion("{}")))
        with pytest.raises(ValidationError):
            await service.verify(VerifyRequest(statement="  "))


class TestLedgerLinkedVerification:
    @pytest.mark.asyncio
    async def test_writes_judgment_onto_entry(self, store):
        entry = await ChainLinker(store).append(StatementCreate(statement="Sky is blue", speaker="Alice"))
        service = VerificationService(make_oracle(lambda r: completion(json.dumps(FULL_JUDGMENT))), store)

        response = await service.verify_entry(entry.id)

        assert response.statement_id == entry.id
        assert entry.verification_status == VerificationStatus.DISPUTED
        assert entry.verification_confidence == VerificationConfidence.MEDIUM

    @pytest.mark.asyncio
    async def test_existing_judgment_is_not_overwritten(self, store):
        entry = await ChainLinker(store).append(StatementCreate(statement="Sky is blue", speaker="Alice"))
        await store.set_verification(entry.id, VerificationStatus.VERIFIED, VerificationConfidence.HIGH)
        service = VerificationService(make_oracle(lambda r: completion(json.dumps(FULL_JUDGMENT))), store)

        response = await service.verify_entry(entry.id)

        assert response.verification.status == VerificationStatus.DISPUTED
        assert entry.verification_status == VerificationStatus.VERIFIED

    @pytest.mark.asyncio
    async def test_persistence_failure_is_swallowed(self, store):
        entry = await ChainLinker(store).append(StatementCreate(statement="Sky is blue", speaker="Alice"))
        store.fail_set_verification = True
        service = VerificationService(make_oracle(lambda r: completion(json.dumps(FULL_JUDGMENT))), store)

        response = await service.verify_entry(entry.id)

        assert response.verification.status == VerificationStatus.DISPUTED
        assert entry.verification_status is None

    @pytest.mark.asyncio
    async def test_ad_hoc_verification_records_on_matching_entry(self, store):
        entry = await ChainLinker(store).append(StatementCreate(statement="Sky is blue", speaker="Alice"))
        service = VerificationService(make_oracle(lambda r: completion(json.dumps(FULL_JUDGMENT))), store)

        response = await service.verify(VerifyRequest(statement="Sky is blue", speaker="Alice"))

        assert response.statement_id == entry.id
        assert entry.verification_status == VerificationStatus.DISPUTED

    @pytest.mark.asyncio
    async def test_unknown_entry(self, store):
        service = VerificationService(make_oracle(lambda r: completion("{}")), store)
        with pytest.raises(NotFoundError):
            await service.verify_entry(uuid.uuid4())
