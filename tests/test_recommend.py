"""Tests for description-based recommendations."""
import json
from unittest.mock import MagicMock

import pytest

from bookscout.errors import UpstreamContractFailure, ValidationFailure
from bookscout.recommend import (
    GeminiCompletion,
    RecommendationClient,
    RecommendationResult,
    build_recommendation_prompt,
    validate_description,
)

DESCRIPTION = "A boy wizard discovers a hidden school of magic."


def capability_returning(value):
    capability = MagicMock()
    capability.complete.return_value = value
    return capability


def test_description_of_19_characters_is_rejected_before_model_call():
    capability = capability_returning({"recommendations": []})
    client = RecommendationClient(capability)

    with pytest.raises(ValidationFailure) as exc_info:
        client.invoke("x" * 19)

    assert "20" in str(exc_info.value)
    capability.complete.assert_not_called()


def test_description_of_20_characters_reaches_model():
    capability = capability_returning({"recommendations": []})
    client = RecommendationClient(capability)

    client.invoke("y" * 20)

    capability.complete.assert_called_once()
    prompt_text, schema = capability.complete.call_args.args
    assert "y" * 20 in prompt_text
    assert schema is RecommendationResult


def test_validate_description_returns_input():
    assert validate_description(DESCRIPTION) == DESCRIPTION


def test_empty_recommendations_are_valid():
    client = RecommendationClient(capability_returning({"recommendations": []}))

    result = client.invoke(DESCRIPTION)

    assert result.recommendations == []


def test_recommendations_parsed_with_optional_genre():
    payload = {
        "recommendations": [
            {"title": "The Name of the Wind", "author": "Patrick Rothfuss",
             "genre": "Fantasy", "reason": "Magic school."},
            {"title": "A Wizard of Earthsea", "author": "Ursula K. Le Guin",
             "reason": "Young wizard's training."},
            {"title": "The Magicians", "author": "Lev Grossman", "reason": "Hidden college."},
            {"title": "Matilda", "author": "Roald Dahl", "reason": "Gifted child."},
        ]
    }
    client = RecommendationClient(capability_returning(payload))

    result = client.invoke(DESCRIPTION)

    assert len(result.recommendations) == 4
    assert result.recommendations[0].genre == "Fantasy"
    assert result.recommendations[1].genre is None


def test_json_text_is_accepted():
    payload = json.dumps({"recommendations": [{"title": "T", "author": "A", "reason": "R"}]})
    client = RecommendationClient(capability_returning(payload))

    assert client.invoke(DESCRIPTION).recommendations[0].title == "T"


def test_missing_reason_is_contract_failure():
    payload = {"recommendations": [{"title": "T", "author": "A", "genre": "G"}]}
    client = RecommendationClient(capability_returning(payload))

    with pytest.raises(UpstreamContractFailure):
        client.invoke(DESCRIPTION)


def test_no_output_is_contract_failure():
    client = RecommendationClient(capability_returning(None))

    with pytest.raises(UpstreamContractFailure):
        client.invoke(DESCRIPTION)


def test_failure_is_not_retried():
    capability = capability_returning({"books": []})
    client = RecommendationClient(capability)

    with pytest.raises(UpstreamContractFailure):
        client.invoke(DESCRIPTION)

    assert capability.complete.call_count == 1


def test_prompt_asks_for_three_books():
    prompt_text = build_recommendation_prompt(DESCRIPTION)

    assert "list of 3 similar books" in prompt_text
    assert DESCRIPTION in prompt_text
    assert "'recommendations' array" in prompt_text


# =============================================================================
# GEMINI CAPABILITY
# =============================================================================

def gemini_response(text):
    response = MagicMock()
    response.candidates = [MagicMock()]
    response.text = text
    return response


def test_gemini_completion_requests_json_schema():
    genai_client = MagicMock()
    genai_client.models.generate_content.return_value = gemini_response(
        '{"recommendations": []}'
    )
    capability = GeminiCompletion(model="gemini-test", temperature=0.1, client=genai_client)

    value = capability.complete("prompt", RecommendationResult)

    assert value == {"recommendations": []}
    kwargs = genai_client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-test"
    assert kwargs["contents"] == "prompt"
    assert kwargs["config"].response_mime_type == "application/json"
    assert kwargs["config"].temperature == 0.1


def test_gemini_completion_empty_candidates_returns_none():
    genai_client = MagicMock()
    response = MagicMock()
    response.candidates = []
    genai_client.models.generate_content.return_value = response

    capability = GeminiCompletion(client=genai_client)

    assert capability.complete("prompt", RecommendationResult) is None


def test_gemini_completion_invalid_json():
    genai_client = MagicMock()
    genai_client.models.generate_content.return_value = gemini_response("Sorry, I can't.")

    capability = GeminiCompletion(client=genai_client)

    with pytest.raises(UpstreamContractFailure):
        capability.complete("prompt", RecommendationResult)
