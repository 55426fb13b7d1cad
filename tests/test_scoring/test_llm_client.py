"""Tests for the evaluator client."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import respx

from applicant_scoring.scoring.config import ScoringConfig
from applicant_scoring.scoring.errors import (
    ConfigurationError,
    EmptyResponse,
    MalformedOutput,
    TransientCallFailure,
)
from applicant_scoring.scoring.llm_client import EvaluatorClient
from applicant_scoring.scoring.prompts import RESPONSE_FORMAT, SYSTEM_PROMPT
from tests.test_scoring.conftest import make_completion


class StatusError(Exception):
    """Mimics SDK errors that carry an HTTP status code."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


def _client_returning(response=None, side_effect=None) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=response, side_effect=side_effect
    )
    return client


class TestInvoke:
    async def test_strict_output(self, scoring_config, sample_context, evaluation_payload) -> None:
        client = _client_returning(make_completion(json.dumps(evaluation_payload)))
        evaluator = EvaluatorClient(scoring_config, client=client)

        evaluation = await evaluator.invoke(sample_context)

        assert evaluation.overall_score == 82
        assert evaluation.strengths == ["Strong Python", "Database design"]
        assert evaluation.provenance == "strict"
        assert evaluation.model == "gpt-4o-mini"
        assert evaluation.version == "v2"

    async def test_request_shape(self, scoring_config, sample_context, evaluation_payload) -> None:
        client = _client_returning(make_completion(json.dumps(evaluation_payload)))
        evaluator = EvaluatorClient(scoring_config, client=client)

        await evaluator.invoke(sample_context)

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 2048
        assert kwargs["response_format"] is RESPONSE_FORMAT
        assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        user_prompt = kwargs["messages"][1]["content"]
        assert "Ada Lovelace" in user_prompt
        assert "distributed systems" in user_prompt

    async def test_repaired_output(self, scoring_config, sample_context, evaluation_payload) -> None:
        raw = json.dumps(evaluation_payload)[:-1]
        client = _client_returning(make_completion(raw))

        evaluation = await EvaluatorClient(scoring_config, client=client).invoke(sample_context)

        assert evaluation.provenance == "repaired"
        assert evaluation.overall_score == 82

    async def test_empty_content(self, scoring_config, sample_context) -> None:
        client = _client_returning(make_completion(""))

        with pytest.raises(EmptyResponse) as exc_info:
            await EvaluatorClient(scoring_config, client=client).invoke(sample_context)
        assert exc_info.value.retryable

    async def test_no_choices(self, scoring_config, sample_context) -> None:
        response = MagicMock()
        response.choices = []
        client = _client_returning(response)

        with pytest.raises(EmptyResponse):
            await EvaluatorClient(scoring_config, client=client).invoke(sample_context)

    async def test_unparseable_content(self, scoring_config, sample_context) -> None:
        client = _client_returning(make_completion("Sorry, I can't help with that."))

        with pytest.raises(MalformedOutput) as exc_info:
            await EvaluatorClient(scoring_config, client=client).invoke(sample_context)
        assert exc_info.value.code == "invalid_openai_json"


class TestErrorClassification:
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_rejection_is_configuration(
        self, scoring_config, sample_context, status
    ) -> None:
        client = _client_returning(side_effect=StatusError("bad key", status))

        with pytest.raises(ConfigurationError) as exc_info:
            await EvaluatorClient(scoring_config, client=client).invoke(sample_context)
        assert exc_info.value.status_code == status
        assert not exc_info.value.retryable

    @pytest.mark.parametrize("status", [429, 500, 503])
    async def test_api_errors_are_transient(
        self, scoring_config, sample_context, status
    ) -> None:
        client = _client_returning(side_effect=StatusError("upstream", status))

        with pytest.raises(TransientCallFailure) as exc_info:
            await EvaluatorClient(scoring_config, client=client).invoke(sample_context)
        assert exc_info.value.code == "openai_generation_failed"
        assert exc_info.value.retryable

    async def test_network_error_is_transient(self, scoring_config, sample_context) -> None:
        client = _client_returning(side_effect=ConnectionError("reset by peer"))

        with pytest.raises(TransientCallFailure):
            await EvaluatorClient(scoring_config, client=client).invoke(sample_context)


class TestConfiguration:
    async def test_missing_key_raises_before_call(self, sample_context) -> None:
        config = ScoringConfig(openai_api_key=None)
        evaluator = EvaluatorClient(config)

        with pytest.raises(ConfigurationError) as exc_info:
            await evaluator.invoke(sample_context)
        assert exc_info.value.code == "openai_not_configured"

    async def test_sdk_client_construction(self) -> None:
        config = ScoringConfig(openai_api_key="sk-test", llm_timeout=42.0, max_attempts=1)
        evaluator = EvaluatorClient(config)

        client = evaluator._get_openai_client()
        try:
            assert client.max_retries == 0
            assert client.timeout == 42.0
            assert evaluator._get_openai_client() is client
        finally:
            await evaluator.close()

    async def test_one_http_request_per_attempt(self, sample_context) -> None:
        config = ScoringConfig(openai_api_key="sk-test", max_attempts=1)
        evaluator = EvaluatorClient(config)

        with respx.mock(assert_all_called=False) as mock:
            route = mock.post("https://api.openai.com/v1/chat/completions").mock(
                return_value=httpx.Response(500, json={"error": {"message": "boom"}})
            )
            with pytest.raises(TransientCallFailure):
                await evaluator.invoke(sample_context)

        assert route.call_count == 1
        await evaluator.close()

    def test_model_property(self, scoring_config) -> None:
        assert EvaluatorClient(scoring_config).model == "gpt-4o-mini"

    async def test_close_releases_client(self, scoring_config) -> None:
        client = MagicMock()
        client.close = AsyncMock()
        evaluator = EvaluatorClient(scoring_config, client=client)

        await evaluator.close()

        client.close.assert_awaited_once()
