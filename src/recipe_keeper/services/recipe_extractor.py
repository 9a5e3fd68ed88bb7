"""Recipe extraction orchestrators (text and URL modality)."""

from __future__ import annotations

import json
from typing import Any

from ..constants import ALLOWED_TAGS, SUPPORTED_URL_DOMAINS
from ..domain.errors import InvalidInputError, ModelOutputParseError, UnsupportedDomainError
from ..domain.models import ErrorCode, ExtractionValidationResult, ReducedContent
from ..llm.runtime import ChatCompletionGateway, ChatCompletionRequest
from ..observability.logger import get_logger
from ..scraping.page_fetcher import PageFetcher
from ..utils.validators import is_supported_domain, is_valid_http_url
from .content_reducer import ContentReducer
from .extraction_validator import validate_extracted_data

logger = get_logger(__name__)

MAX_PAGE_TEXT_CHARS = 20_000

MODEL_PARAMETERS = {"temperature": 0.1, "max_tokens": 3000}

_PAGE_ONLY_FIELDS = ("image_url", "source_url")

RECIPE_EXTRACTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {
            "type": "string",
            "description": "Recipe name in Polish (EXACTLY this field name: 'name')",
        },
        "ingredients": {
            "type": "array",
            "items": {"type": "string"},
            "description": (
                "List of ingredients, each as separate string with quantity and unit "
                "(EXACTLY this field name: 'ingredients')"
            ),
        },
        "steps": {
            "type": "array",
            "items": {"type": "string"},
            "description": "List of preparation steps, each as separate string (EXACTLY this field name: 'steps')",
        },
        "preparation_time": {
            "type": "string",
            "description": "Preparation time as string (EXACTLY this field name: 'preparation_time')",
        },
        "suggested_tags": {
            "type": "array",
            "items": {"type": "string", "enum": list(ALLOWED_TAGS)},
            "description": "Suggested tags from allowed list only (EXACTLY this field name: 'suggested_tags')",
        },
        "image_url": {
            "type": "string",
            "description": "Main recipe image URL (EXACTLY this field name: 'image_url')",
        },
        "source_url": {
            "type": "string",
            "description": "Source page URL (EXACTLY this field name: 'source_url')",
        },
    },
    "required": ["name", "ingredients", "steps", "suggested_tags"],
    "additionalProperties": False,
}

RESPONSE_FORMAT: dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {"name": "recipe_extraction", "strict": True, "schema": RECIPE_EXTRACTION_SCHEMA},
}

_TAG_LIST = ", ".join(ALLOWED_TAGS)

TEXT_SYSTEM_PROMPT = f"""You are an expert at analyzing Polish culinary recipes. Your task is to extract structured recipe data from the provided text.

CRITICAL REQUIREMENTS - JSON FIELD NAMES:
- Use EXACTLY these field names: "name", "ingredients", "steps", "preparation_time", "suggested_tags"
- DO NOT use Polish field names like "nazwa", "składniki", "przygotowanie", "tagi"
- DO NOT use alternative names like "instructions", "description", "opis"
- Follow the JSON schema EXACTLY

EXTRACTION RULES:
1. Extract ONLY information that is actually present in the text
2. Each ingredient as separate array item with quantity, unit and name (e.g. "2 szklanki mąki pszennej")
3. Each preparation step as separate array item
4. For suggested_tags use ONLY from this list: {_TAG_LIST}
5. If recipe name is not found, try to deduce it from context
6. Ignore ads, comments and other irrelevant content

Return JSON response following the schema EXACTLY."""

URL_SYSTEM_PROMPT = f"""You are an expert at analyzing Polish culinary recipes. Your task is to extract structured recipe data from the provided webpage content.

CRITICAL REQUIREMENTS - JSON FIELD NAMES:
- Use EXACTLY these field names: "name", "ingredients", "steps", "preparation_time", "suggested_tags", "image_url", "source_url"
- DO NOT use Polish field names like "nazwa", "składniki", "przygotowanie", "tagi"
- DO NOT use alternative names like "instructions", "description", "opis"
- Follow the JSON schema EXACTLY

EXTRACTION RULES:
1. Extract ONLY information that is actually present in the webpage content
2. Ignore navigation, ads, comments, and other irrelevant content
3. Focus on the actual recipe content
4. Each ingredient as separate array item with quantity, unit and name (e.g. "2 szklanki mąki pszennej")
5. Each preparation step as separate array item
6. For suggested_tags use ONLY from this list: {_TAG_LIST}
7. If recipe name is not found, try to deduce it from context or page title
8. For image_url: use the main recipe image URL provided with the content
9. For source_url: use the provided source URL
10. Ignore duplicate or redundant information

Return JSON response following the schema EXACTLY."""


async def _complete_json(gateway: ChatCompletionGateway, *, system_message: str, user_message: str) -> Any:
    response = await gateway.create_chat_completion(
        ChatCompletionRequest(
            user_message=user_message,
            system_message=system_message,
            response_format=RESPONSE_FORMAT,
            model_parameters=dict(MODEL_PARAMETERS),
        )
    )
    content = response.first_message_content
    if not content:
        raise ModelOutputParseError("No response from AI model")
    try:
        return json.loads(content)
    except ValueError as e:
        raise ModelOutputParseError(f"Invalid JSON response format: {e}", detail=content[:500]) from e


class TextRecipeExtractor:
    def __init__(self, gateway: ChatCompletionGateway):
        self._gateway = gateway

    async def extract_from_text(self, text: str) -> ExtractionValidationResult:
        raw = await _complete_json(
            self._gateway,
            system_message=TEXT_SYSTEM_PROMPT,
            user_message=f"Wyekstraktuj dane przepisu z następującego tekstu:\n\n{text}",
        )
        if isinstance(raw, dict):
            # Pasted text has no page: any URL here was made up by the model.
            for key in _PAGE_ONLY_FIELDS:
                raw.pop(key, None)
        return validate_extracted_data(raw)


class UrlRecipeExtractor:
    """Fetch a whitelisted recipe page, reduce it and extract the recipe.

    ``scrape`` and ``extract_from_page`` are exposed separately so callers can
    time the model call on its own; ``extract_from_url`` runs both.
    """

    def __init__(
        self,
        gateway: ChatCompletionGateway,
        fetcher: PageFetcher,
        reducer: ContentReducer,
        *,
        supported_domains: tuple[str, ...] = SUPPORTED_URL_DOMAINS,
    ):
        self._gateway = gateway
        self._fetcher = fetcher
        self._reducer = reducer
        self._supported_domains = supported_domains

    def ensure_supported(self, url: str) -> None:
        if not is_valid_http_url(url):
            raise InvalidInputError("Invalid URL format", code=ErrorCode.INVALID_URL.value)
        if not is_supported_domain(url, self._supported_domains):
            raise UnsupportedDomainError(
                f"Domain not supported. Supported domains: {', '.join(self._supported_domains)}",
                detail=url,
            )

    async def scrape(self, url: str) -> ReducedContent:
        self.ensure_supported(url)
        page = await self._fetcher.fetch(url)
        return self._reducer.reduce(page.html, url)

    async def extract_from_page(self, url: str, page: ReducedContent) -> ExtractionValidationResult:
        image_info = f"Main image URL found: {page.image_url}" if page.image_url else "No main image found."
        title_info = f"\nPage title: {page.title}" if page.title else ""
        raw = await _complete_json(
            self._gateway,
            system_message=URL_SYSTEM_PROMPT,
            user_message=(
                "Wyekstraktuj dane przepisu z następującej treści strony internetowej:\n\n"
                f"Source URL: {url}{title_info}\n\n{image_info}\n\n"
                f"Treść:\n{page.text[:MAX_PAGE_TEXT_CHARS]}"
            ),
        )
        if isinstance(raw, dict):
            raw["source_url"] = url
            if page.image_url:
                raw["image_url"] = page.image_url
        return validate_extracted_data(raw)

    async def extract_from_url(self, url: str) -> ExtractionValidationResult:
        page = await self.scrape(url)
        logger.info("page_reduced_for_extraction", url=url, text_length=len(page.text))
        return await self.extract_from_page(url, page)
