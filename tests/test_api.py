"""Tests for API endpoints."""

import json
import logging

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import FakeGeminiService, json_response
from viberecipe.api.dependencies import get_recipe_extractor, get_tandoor_client
from viberecipe.main import app
from viberecipe.services.fetcher_service import FetcherService
from viberecipe.services.image_resolver import ImageResolver
from viberecipe.services.recipe_extractor import RecipeExtractor
from viberecipe.services.tandoor_client import TandoorClient

TANDOOR_URL = "https://tandoor.example.test"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def offline(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404)


@pytest.fixture
def use_gemini(mock_http):
    """Install an extractor backed by canned Gemini responses."""

    def install(*responses):
        gemini = FakeGeminiService(*responses)
        http_client = mock_http(offline)
        app.dependency_overrides[get_recipe_extractor] = lambda: RecipeExtractor(
            gemini,
            fetcher_service=FetcherService(http_client=http_client),
            image_resolver=ImageResolver(http_client=http_client),
        )
        return gemini

    return install


@pytest.fixture
def use_tandoor(mock_http):
    """Install a Tandoor client answered by `handler`."""

    def install(handler):
        app.dependency_overrides[get_tandoor_client] = lambda: TandoorClient(
            TANDOOR_URL, "secret", http_client=mock_http(handler)
        )

    return install


class TestHealth:
    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_readiness_check(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert "gemini_model" in data["dependencies"]

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["name"] == "VibeRecipe API"

    def test_lifespan_logs_startup(self, caplog):
        caplog.set_level(logging.INFO, logger="viberecipe.main")
        with TestClient(app) as started:
            assert started.get("/health").status_code == 200

        messages = [r.getMessage() for r in caplog.records if r.name == "viberecipe.main"]
        assert "VibeRecipe API starting up..." in messages
        assert "VibeRecipe API shutting down" in messages

    def test_responses_carry_request_id_and_security_headers(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["x-request-id"] == "abc123"
        assert response.headers["x-content-type-options"] == "nosniff"


class TestExtract:
    def test_missing_gemini_key(self, client, no_server_gemini_key):
        response = client.post("/api/extract", json={"content": "pasta", "type": "text"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Missing Gemini API Key"

    def test_text_extraction(self, client, use_gemini):
        gemini = use_gemini('```json\n{"name": "Pasta", "recipeIngredient": ["pasta", "salt"]}\n```')

        response = client.post("/api/extract", json={"content": "pasta with salt", "type": "text"})

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Pasta"
        assert data["recipeIngredient"] == ["pasta", "salt"]
        assert data["image"].startswith("https://pollinations.ai/p/")
        assert "url" not in data
        assert gemini.text_calls == ["pasta with salt"]

    def test_type_defaults_to_text(self, client, use_gemini):
        use_gemini('{"name": "Soup"}')
        response = client.post("/api/extract", json={"content": "soup"})
        assert response.status_code == 200
        assert response.json()["name"] == "Soup"

    def test_private_url_is_rejected(self, client, use_gemini):
        gemini = use_gemini('{"name": "Pasta"}')

        response = client.post("/api/extract", json={"content": "http://localhost/admin", "type": "url"})

        assert response.status_code == 400
        assert gemini.text_calls == []

    def test_unreachable_url(self, client, use_gemini):
        use_gemini('{"name": "Pasta"}')
        response = client.post("/api/extract", json={"content": "https://example.test/nope", "type": "url"})
        assert response.status_code == 502
        assert response.json()["error"] == "Failed to fetch URL"

    def test_empty_content_is_rejected(self, client, use_gemini):
        use_gemini('{"name": "Pasta"}')
        response = client.post("/api/extract", json={"content": "", "type": "text"})
        assert response.status_code == 400

    def test_unparseable_response_returns_raw_text(self, client, use_gemini):
        use_gemini("I am not sure what you mean.")

        response = client.post("/api/extract", json={"content": "pasta", "type": "text"})

        assert response.status_code == 502
        data = response.json()
        assert data["error"] == "Failed to parse API response"
        assert data["raw"] == "I am not sure what you mean."

    def test_not_a_recipe(self, client, use_gemini):
        use_gemini('{"error": "Not a recipe"}')
        response = client.post("/api/extract", json={"content": "hello", "type": "text"})
        assert response.status_code == 422
        assert response.json()["error"] == "Not a recipe"

    def test_image_upload(self, client, use_gemini):
        gemini = use_gemini('{"name": "Salad"}')

        response = client.post(
            "/api/extract",
            files={"file": ("salad.png", PNG_BYTES, "image/png")},
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Salad"
        assert gemini.image_calls[0][1] == "image/png"

    def test_multipart_without_file(self, client, use_gemini):
        use_gemini('{"name": "Salad"}')
        response = client.post("/api/extract", data={"note": "no file"}, files={"other": ("x.txt", b"x")})
        assert response.status_code == 400
        assert response.json()["detail"] == "No file provided"


class TestTandoor:
    def test_missing_tandoor_configuration(self, client):
        response = client.post("/api/tandoor", json={"name": "Pasta"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Missing Tandoor configuration"

    def test_send_recipe(self, client, use_tandoor):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return json_response({"id": 3, "name": "Pasta"}, 201)

        use_tandoor(handler)

        response = client.post(
            "/api/tandoor",
            json={"name": "Pasta", "recipeYield": "2 servings", "recipeInstructions": ["Boil", "Serve"]},
        )

        assert response.status_code == 201
        assert response.json() == {
            "recipe": {"id": 3, "name": "Pasta"},
            "image_uploaded": False,
            "image_error": None,
        }
        assert bodies[0]["servings"] == 2
        assert [s["instruction"] for s in bodies[0]["steps"]] == ["Boil", "Serve"]

    def test_send_recipe_in_export_form_shape(self, client, use_tandoor):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return json_response({"id": 4, "name": "Pasta"}, 201)

        use_tandoor(handler)

        response = client.post(
            "/api/tandoor",
            json={
                "name": "Pasta",
                "description": "Imported via VibeRecipe",
                "steps": [{"instruction": "Boil"}, {"instruction": "Serve"}],
                "ingredients": ["pasta", {"food": "salt", "unit": "g", "quantity": 5}],
                "url": "https://example.test/pasta",
                "prepTime": "PT5M",
                "recipeYield": "2",
                "internal": True,
            },
        )

        assert response.status_code == 201
        steps = bodies[0]["steps"]
        assert [s["instruction"] for s in steps] == ["Boil", "Serve"]
        assert [i["food"]["name"] for i in steps[0]["ingredients"]] == ["pasta", "salt"]
        assert steps[0]["ingredients"][1]["unit"] == {"name": "g"}
        assert steps[1]["ingredients"] == []
        assert bodies[0]["source_url"] == "https://example.test/pasta"

    def test_send_recipe_with_legacy_instruction_field(self, client, use_tandoor):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return json_response({"id": 5}, 201)

        use_tandoor(handler)

        response = client.post("/api/tandoor", json={"name": "Toast", "instruction": "Toast bread\nButter it"})

        assert response.status_code == 201
        assert [s["instruction"] for s in bodies[0]["steps"]] == ["Toast bread", "Butter it"]

    def test_send_recipe_without_name(self, client, use_tandoor):
        use_tandoor(lambda request: json_response({"id": 6}, 201))
        response = client.post("/api/tandoor", json={"steps": [{"instruction": "Boil"}]})
        assert response.status_code == 400

    def test_rejected_token(self, client, use_tandoor):
        use_tandoor(lambda request: httpx.Response(403, text="Forbidden"))

        response = client.post("/api/tandoor", json={"name": "Pasta"})

        assert response.status_code == 401
        assert response.json()["upstream_status"] == 403

    def test_native_import_500(self, client, use_tandoor):
        use_tandoor(lambda request: httpx.Response(500, text="Traceback"))

        response = client.post("/api/tandoor/import", json={"url": "https://blog.example.test/stew"})

        assert response.status_code == 502
        data = response.json()
        assert data["error"] == "Tandoor failed to import this URL directly"
        assert "AI extraction" in data["detail"]

    def test_native_import_rejects_non_http_url(self, client, use_tandoor):
        use_tandoor(offline)
        response = client.post("/api/tandoor/import", json={"url": "ftp://blog.example.test/stew"})
        assert response.status_code == 400

    def test_native_import_save_failure_returns_parsed(self, client, use_tandoor):
        def handler(request):
            if request.url.path == "/api/recipe-from-source/":
                return json_response({"recipe_json": {"name": "Stew", "steps": []}})
            return json_response({"name": ["Too long"]}, 400)

        use_tandoor(handler)

        response = client.post("/api/tandoor/import", json={"url": "https://blog.example.test/stew"})

        assert response.status_code == 400
        assert response.json()["parsed"] == {"name": "Stew", "steps": []}
