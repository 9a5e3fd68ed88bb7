from __future__ import annotations

import json
from typing import Any, Optional

from recipe_keeper.domain.models import ReducedContent
from recipe_keeper.llm.runtime import (
    ChatChoice,
    ChatCompletionGateway,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
)
from recipe_keeper.scraping.page_fetcher import FetchedPage

JAJECZNICA = {
    "name": "Jajecznica na maśle",
    "ingredients": ["3 jajka", "1 łyżka masła", "szczypiorek"],
    "steps": ["Roztop masło na patelni.", "Wbij jajka i mieszaj do ścięcia."],
    "preparation_time": "10 minut",
    "suggested_tags": ["śniadanie", "szybkie"],
}


class FakeGateway(ChatCompletionGateway):
    def __init__(self, payload: Any = None, *, content: Optional[str] = None, error: Exception | None = None):
        if content is None and payload is not None:
            content = json.dumps(payload, ensure_ascii=False)
        self.content = content
        self.error = error
        self.requests: list[ChatCompletionRequest] = []

    async def create_chat_completion(self, req: ChatCompletionRequest) -> ChatCompletionResponse:
        self.requests.append(req)
        if self.error is not None:
            raise self.error
        return ChatCompletionResponse(choices=[ChatChoice(message=ChatMessage(content=self.content))])


class FakeFetcher:
    def __init__(self, html: str = "", *, error: Exception | None = None):
        self.html = html
        self.error = error
        self.urls: list[str] = []

    async def fetch(self, url: str) -> FetchedPage:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return FetchedPage(url=url, html=self.html, status=200)


class FakeReducer:
    def __init__(self, content: ReducedContent):
        self.content = content

    def reduce(self, html: str, source_url: str) -> ReducedContent:
        return self.content
