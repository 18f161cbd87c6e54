"""Tests for the extraction pipeline."""

import asyncio

import httpx
import pytest

from conftest import SAMPLE_HTML, FakeGeminiService
from viberecipe.models.recipe import RecipeInstruction
from viberecipe.services.fetcher_service import FetcherService, html_to_text
from viberecipe.services.image_resolver import ImageResolver
from viberecipe.services.recipe_extractor import RecipeExtractor
from viberecipe.utils.exceptions import (
    FetchError,
    NotARecipeError,
    ParseError,
    StaleResultError,
    ValidationError,
)

RECIPE_URL = "https://example.test/recipe"
FENCED_PASTA = '```json\n{"name":"Pasta","recipeIngredient":["pasta","salt"]}\n```'
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def web(request: httpx.Request) -> httpx.Response:
    if request.url.host == "example.test" and request.url.path == "/recipe":
        return httpx.Response(200, text=SAMPLE_HTML, headers={"content-type": "text/html"})
    if request.url.host == "img.example.test":
        return httpx.Response(200 if request.url.path == "/pasta.jpg" else 404)
    return httpx.Response(404)


def make_extractor(gemini, http_client):
    return RecipeExtractor(
        gemini,
        fetcher_service=FetcherService(http_client=http_client),
        image_resolver=ImageResolver(http_client=http_client),
    )


def test_html_to_text_drops_non_content_markup():
    text = html_to_text(SAMPLE_HTML)

    assert text.startswith("Lemon Pasta 200 g pasta 1 tsp salt")
    assert "tracking" not in text
    assert "Copyright" not in text
    assert "Home | Recipes" not in text
    assert "  " not in text
    assert "Boil the pasta. Season and serve." in text


@pytest.mark.asyncio
async def test_url_extraction_scenario(mock_http):
    gemini = FakeGeminiService(FENCED_PASTA)
    extractor = make_extractor(gemini, mock_http(web))

    recipe = await extractor.extract_from_url(RECIPE_URL)

    assert recipe.name == "Pasta"
    assert recipe.url == RECIPE_URL
    assert recipe.image.startswith("https://pollinations.ai/p/")
    assert recipe.recipeIngredient == ["pasta", "salt"]
    assert "Boil the pasta." in gemini.text_calls[0]


@pytest.mark.asyncio
async def test_model_supplied_url_is_kept(mock_http):
    gemini = FakeGeminiService('{"name": "Pasta", "url": "https://origin.test/pasta"}')
    recipe = await make_extractor(gemini, mock_http(web)).extract_from_url(RECIPE_URL)
    assert recipe.url == "https://origin.test/pasta"


@pytest.mark.asyncio
async def test_text_extraction_keeps_reachable_image(mock_http):
    gemini = FakeGeminiService(
        'Here you go: {"name": "Pasta", "image": [{"url": "https://img.example.test/pasta.jpg"}], '
        '"recipeInstructions": [{"@type": "HowToStep", "text": "Boil"}, "Serve"]}'
    )
    recipe = await make_extractor(gemini, mock_http(web)).extract_from_text("some pasted recipe")

    assert recipe.url is None
    assert recipe.image == "https://img.example.test/pasta.jpg"
    assert isinstance(recipe.recipeInstructions[0], RecipeInstruction)
    assert recipe.recipeInstructions[0].body == "Boil"
    assert recipe.recipeInstructions[1] == "Serve"


@pytest.mark.asyncio
async def test_sections_and_structured_ingredients_are_normalized(mock_http):
    gemini = FakeGeminiService(
        '{"name": "Cake", "recipeYield": ["8", "8 slices"],'
        ' "recipeIngredient": [{"name": "flour", "unit": {"name": "g"}, "amount": 250}, ""],'
        ' "recipeInstructions": [{"@type": "HowToSection", "name": "Batter",'
        ' "itemListElement": [{"text": "Mix"}, {"text": "Bake"}]}]}'
    )
    recipe = await make_extractor(gemini, mock_http(web)).extract_from_text("cake")

    assert recipe.recipeYield == "8"
    assert len(recipe.recipeIngredient) == 1
    flour = recipe.recipeIngredient[0]
    assert (flour.food, flour.unit, flour.quantity) == ("flour", "g", 250)
    assert [step.body for step in recipe.recipeInstructions] == ["Mix", "Bake"]


@pytest.mark.asyncio
async def test_image_extraction_sends_sniffed_mime_type(mock_http):
    gemini = FakeGeminiService('{"name": "Salad"}')
    recipe = await make_extractor(gemini, mock_http(web)).extract_from_image(PNG_BYTES, None)

    assert recipe.name == "Salad"
    assert gemini.image_calls == [(PNG_BYTES, "image/png")]


@pytest.mark.asyncio
async def test_unsupported_image_is_rejected(mock_http):
    gemini = FakeGeminiService('{"name": "Salad"}')
    with pytest.raises(ValidationError):
        await make_extractor(gemini, mock_http(web)).extract_from_image(b"%PDF-1.4", "application/pdf")
    assert gemini.image_calls == []


@pytest.mark.asyncio
async def test_fetch_failure_stops_before_gemini(mock_http):
    gemini = FakeGeminiService(FENCED_PASTA)
    with pytest.raises(FetchError):
        await make_extractor(gemini, mock_http(web)).extract_from_url("https://example.test/missing")
    assert gemini.text_calls == []


@pytest.mark.asyncio
async def test_not_a_recipe_signal(mock_http):
    gemini = FakeGeminiService('{ "error": "Not a recipe" }')
    with pytest.raises(NotARecipeError):
        await make_extractor(gemini, mock_http(web)).extract_from_text("the weather is nice")


@pytest.mark.asyncio
async def test_unparseable_response_carries_raw_text(mock_http):
    gemini = FakeGeminiService("Sorry, I cannot help with that.")
    with pytest.raises(ParseError) as exc_info:
        await make_extractor(gemini, mock_http(web)).extract_from_text("pasta")
    assert exc_info.value.raw_text == "Sorry, I cannot help with that."


@pytest.mark.asyncio
async def test_candidate_without_name_is_a_parse_error(mock_http):
    gemini = FakeGeminiService('{"description": "nameless"}')
    with pytest.raises(ParseError) as exc_info:
        await make_extractor(gemini, mock_http(web)).extract_from_text("pasta")
    assert "nameless" in exc_info.value.raw_text


@pytest.mark.asyncio
async def test_retry_reruns_identical_input(mock_http):
    gemini = FakeGeminiService("not json at all", FENCED_PASTA)
    extractor = make_extractor(gemini, mock_http(web))

    with pytest.raises(ParseError):
        await extractor.extract_from_text("my grandmother's pasta")
    recipe = await extractor.retry()

    assert recipe.name == "Pasta"
    assert gemini.text_calls == ["my grandmother's pasta", "my grandmother's pasta"]


@pytest.mark.asyncio
async def test_retry_without_previous_extraction(mock_http):
    extractor = make_extractor(FakeGeminiService(FENCED_PASTA), mock_http(web))
    with pytest.raises(ValidationError):
        await extractor.retry()


@pytest.mark.asyncio
async def test_superseded_extraction_raises_stale_result(mock_http):
    gate = asyncio.Event()
    gemini = FakeGeminiService(FENCED_PASTA, gate=gate, gated_text="slow")
    extractor = make_extractor(gemini, mock_http(web))

    slow = asyncio.create_task(extractor.extract_from_text("slow"))
    await asyncio.sleep(0)

    fresh = await extractor.extract_from_text("fast")
    gate.set()

    assert fresh.name == "Pasta"
    with pytest.raises(StaleResultError):
        await slow
