"""Evaluator client: one OpenAI call per invocation, strict schema output.

The SDK import is deferred to first use so a missing package or API key
surfaces as ConfigurationError at call time rather than at import time.
Failures are classified into the scoring error taxonomy; retrying is the
caller's job (see scoring.retry).
"""

import logging
import time
from typing import Any

from applicant_scoring.observability.metrics import get_metrics
from applicant_scoring.scoring.config import ScoringConfig
from applicant_scoring.scoring.errors import (
    ConfigurationError,
    EmptyResponse,
    MalformedOutput,
    TransientCallFailure,
)
from applicant_scoring.scoring.parsing import (
    ParseFailure,
    parse_evaluation_json,
    to_evaluation,
)
from applicant_scoring.scoring.prompts import (
    RESPONSE_FORMAT,
    SYSTEM_PROMPT,
    build_user_prompt,
)
from applicant_scoring.scoring.schemas import ScoringContext, StructuredEvaluation

logger = logging.getLogger(__name__)

# HTTP statuses that mean the credentials themselves are unusable
_CONFIGURATION_STATUSES = frozenset({401, 403})


class EvaluatorClient:
    """Calls the external model and returns a StructuredEvaluation.

    Features:
    - Lazy AsyncOpenAI initialization
    - Strict json_schema response format
    - One best-effort repair pass on malformed JSON
    - Error classification for the retry controller

    Args:
        config: Scoring configuration with API key and model name.
        client: Optional pre-built async OpenAI-compatible client.
    """

    def __init__(self, config: ScoringConfig, client: Any = None) -> None:
        self._config = config
        self._client = client

    @property
    def model(self) -> str:
        return self._config.openai_model

    def _get_openai_client(self) -> Any:
        """Lazy-initialize the OpenAI async client."""
        if self._client is not None:
            return self._client
        if not self._config.configured:
            raise ConfigurationError("SCORING_OPENAI_API_KEY is not set")
        try:
            import openai
        except ImportError as e:
            raise ConfigurationError(
                "openai package is not installed", code="openai_sdk_not_installed"
            ) from e

        self._client = openai.AsyncOpenAI(
            api_key=self._config.openai_api_key.get_secret_value(),
            timeout=self._config.llm_timeout,
            # RetryController owns every retry
            max_retries=0,
        )
        return self._client

    async def invoke(self, context: ScoringContext) -> StructuredEvaluation:
        """Evaluate one candidate context.

        Raises:
            ConfigurationError: No API key, no SDK, or credentials rejected.
            EmptyResponse: The model returned no content.
            TransientCallFailure: Network or API error.
            MalformedOutput: Output unparseable even after repair.
        """
        metrics = get_metrics()
        client = self._get_openai_client()

        logger.info(
            "Requesting evaluation for candidate %s (model=%s)",
            context.candidate_id,
            self._config.openai_model,
        )
        start = time.monotonic()
        try:
            response = await client.chat.completions.create(
                model=self._config.openai_model,
                temperature=self._config.temperature,
                max_tokens=self._config.max_tokens,
                response_format=RESPONSE_FORMAT,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_prompt(context)},
                ],
            )
        except Exception as e:
            latency = time.monotonic() - start
            status = getattr(e, "status_code", None)
            if status in _CONFIGURATION_STATUSES:
                metrics.record_evaluator_call("config", latency)
                raise ConfigurationError(
                    f"Evaluator rejected credentials: {e}", status_code=status
                ) from e
            metrics.record_evaluator_call("transient", latency)
            logger.warning(
                "Evaluator call failed for candidate %s: %s", context.candidate_id, e
            )
            raise TransientCallFailure(
                str(e) or type(e).__name__, status_code=status
            ) from e

        latency = time.monotonic() - start
        raw = _response_text(response)
        if not raw:
            metrics.record_evaluator_call("empty", latency)
            raise EmptyResponse("Evaluator returned an empty response")

        result = parse_evaluation_json(raw)
        if isinstance(result, ParseFailure):
            metrics.record_evaluator_call("malformed", latency)
            logger.warning(
                "Unparseable evaluator output for candidate %s: %s",
                context.candidate_id,
                result.reason,
            )
            raise MalformedOutput(result.reason)

        metrics.record_evaluator_call(
            "repaired" if result.provenance == "repaired" else "success", latency
        )
        return to_evaluation(
            result,
            model=self._config.openai_model,
            version=self._config.canonical_version,
        )

    async def close(self) -> None:
        """Clean up the SDK client."""
        if self._client is not None and hasattr(self._client, "close"):
            await self._client.close()
        self._client = None


def _response_text(response: Any) -> str:
    """First choice's message content, or "" if the response has none."""
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError):
        return ""
    return content.strip() if isinstance(content, str) else ""
