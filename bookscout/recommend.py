"""
Description-based book recommendations.

A free-text description is checked locally, dropped into a fixed prompt
and sent to a generative model through the `CompletionCapability`
interface. Whatever comes back must match `RecommendationResult`; a
response that does not is an UpstreamContractFailure and is never
partially accepted.

`GeminiCompletion` is the production capability (Google Gen AI SDK with
a JSON response schema). Tests and other providers plug in anything with
a `complete(prompt_text, output_schema)` method.
"""
import json
import logging
from typing import Any, List, Optional, Protocol, Type

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel, Field, ValidationError

from bookscout.config import Config
from bookscout.errors import TransportFailure, UpstreamContractFailure, ValidationFailure

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 20


# =============================================================================
# SCHEMAS
# =============================================================================

class RecommendationRequest(BaseModel):
    """Input of the recommendation flow."""
    description: str = Field(
        ...,
        min_length=MIN_DESCRIPTION_LENGTH,
        description="The description of the book.",
    )


class RecommendedBook(BaseModel):
    """One suggested book."""
    title: str = Field(..., description="The title of the recommended book.")
    author: str = Field(..., description="The author of the recommended book.")
    genre: Optional[str] = Field(None, description="The genre of the recommended book.")
    reason: str = Field(
        ...,
        description="Why the book is recommended based on the provided description.",
    )


class RecommendationResult(BaseModel):
    """Model output; any number of recommendations is valid."""
    recommendations: List[RecommendedBook] = Field(
        ..., description="A list of recommended books."
    )


# =============================================================================
# PROMPT
# =============================================================================

RECOMMENDATION_PROMPT_TEMPLATE = """You are an expert book recommender. Based on the following book description, please provide a list of 3 similar books.

For each recommended book, include:
- title
- author
- genre (if easily identifiable from the context of the description or common knowledge about the book)
- reason (a short explanation of why this book is a good recommendation based on the provided description)

Description:
{description}

Format your response as a JSON object with a 'recommendations' array.
"""


def build_recommendation_prompt(description: str) -> str:
    return RECOMMENDATION_PROMPT_TEMPLATE.format(description=description)


def validate_description(description: str) -> str:
    """
    Check a description before anything is sent to the model.

    Raises:
        ValidationFailure: Fewer than MIN_DESCRIPTION_LENGTH characters
    """
    try:
        request = RecommendationRequest(description=description)
    except ValidationError as e:
        raise ValidationFailure(
            f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters."
        ) from e
    return request.description


# =============================================================================
# COMPLETION CAPABILITY
# =============================================================================

class CompletionCapability(Protocol):
    """Prompt text and output schema in, structured value (or None) out."""

    def complete(self, prompt_text: str, output_schema: Type[BaseModel]) -> Any:
        ...


class GeminiCompletion:
    """CompletionCapability backed by Gemini structured output."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        client: Optional[genai.Client] = None
    ):
        self.api_key = api_key if api_key is not None else Config.GOOGLE_API_KEY
        self.model = model or Config.GEMINI_MODEL
        self.temperature = Config.GEMINI_TEMPERATURE if temperature is None else temperature
        self._client = client

    def _get_client(self) -> genai.Client:
        """Lazy initialization of the Gen AI client."""
        if self._client is None:
            if not self.api_key:
                raise TransportFailure(
                    "GOOGLE_API_KEY not configured. Please set it in your .env file."
                )
            self._client = genai.Client(api_key=self.api_key)
            logger.info(f"Gemini client initialized ({self.model})")
        return self._client

    def complete(self, prompt_text: str, output_schema: Type[BaseModel]) -> Any:
        config = types.GenerateContentConfig(
            temperature=self.temperature,
            response_mime_type="application/json",
            response_schema=output_schema,
        )

        try:
            response = self._get_client().models.generate_content(
                model=self.model,
                contents=prompt_text,
                config=config,
            )
        except genai_errors.APIError as e:
            logger.error(f"Gemini request failed: {e}")
            raise TransportFailure(f"Gemini request failed: {e}", cause=e) from e

        if not response.candidates or not response.candidates[0].content:
            logger.error("Empty response from Gemini API")
            return None

        response_text = (response.text or "").strip()
        if not response_text:
            return None

        try:
            return json.loads(response_text)
        except json.JSONDecodeError as e:
            raise UpstreamContractFailure(f"Model returned invalid JSON: {e}") from e


# =============================================================================
# CLIENT
# =============================================================================

class RecommendationClient:
    """Validates a description, asks the model, validates the answer."""

    def __init__(self, capability: Optional[CompletionCapability] = None):
        self.capability = capability or GeminiCompletion()

    def invoke(self, description: str) -> RecommendationResult:
        """
        Recommend books similar to `description`.

        Raises:
            ValidationFailure: Description too short (no model call made)
            UpstreamContractFailure: No output, or output not matching the schema
        """
        description = validate_description(description)
        prompt_text = build_recommendation_prompt(description)

        logger.info(f"Requesting recommendations ({len(description)} char description)")
        raw = self.capability.complete(prompt_text, RecommendationResult)

        if raw is None:
            raise UpstreamContractFailure("The model returned no recommendations payload")
        if isinstance(raw, RecommendationResult):
            return raw

        try:
            if isinstance(raw, (str, bytes)):
                result = RecommendationResult.model_validate_json(raw)
            elif isinstance(raw, BaseModel):
                result = RecommendationResult.model_validate(raw.model_dump())
            else:
                result = RecommendationResult.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Model output failed schema validation: {e.error_count()} errors")
            raise UpstreamContractFailure(f"Model output failed schema validation: {e}") from e

        logger.info(f"Received {len(result.recommendations)} recommendations")
        return result
