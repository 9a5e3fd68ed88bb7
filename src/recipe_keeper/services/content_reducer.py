"""Content reduction (noise removal + main-content text + main image)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Comment

from ..constants import MIN_REDUCED_TEXT_LENGTH
from ..domain.errors import InsufficientContentError
from ..domain.models import ReducedContent
from ..observability.logger import get_logger
from ..processing.image_locator import ImageLocator
from ..utils.validators import normalize_hostname

logger = get_logger(__name__)


@dataclass(frozen=True)
class DomainProfile:
    content_selectors: tuple[str, ...]
    noise_selectors: tuple[str, ...]


DOMAIN_PROFILES: dict[str, DomainProfile] = {
    "kwestiasmaku.com": DomainProfile(
        content_selectors=(".entry-content", ".recipe-content", "article"),
        noise_selectors=(".social-sharing", ".advertisement", ".related-posts", "nav", "footer", ".comments"),
    ),
    "aniagotuje.pl": DomainProfile(
        content_selectors=(".post-content", ".recipe-content", "article", ".content"),
        noise_selectors=(".social-media", ".advertisement", ".related-recipes", "nav", "footer", ".comments"),
    ),
    "gotujmy.pl": DomainProfile(
        content_selectors=(".recipe-body", ".post-content", "article", ".content"),
        noise_selectors=(".social-buttons", ".advertisement", ".related-content", "nav", "footer", ".comments"),
    ),
}

DEFAULT_PROFILE = DomainProfile(
    content_selectors=(
        "article",
        ".content",
        ".post-content",
        ".entry-content",
        ".recipe-content",
        "main",
        ".main-content",
    ),
    noise_selectors=(
        "nav",
        "footer",
        ".advertisement",
        ".ads",
        ".social-sharing",
        ".comments",
        ".sidebar",
        ".related-posts",
        ".related-recipes",
    ),
)

# Sentences mentioning any of these are dropped from the reduced text.
NOISE_PHRASES = (
    "cookie",
    "reklam",
    "newsletter",
    "subskryb",
    "facebook",
    "instagram",
    "twitter",
    "social",
    "udostępnij",
    "komentarz",
    "więcej przepisów",
    "podobne przepisy",
)

_ALWAYS_DROP = ("script", "style", "noscript", "iframe", "svg", "form")
_WHITESPACE = re.compile(r"\s+")
_NOISE_SENTENCES = [
    re.compile(rf"[^.!?]*{re.escape(phrase)}[^.!?]*[.!?]?", re.IGNORECASE) for phrase in NOISE_PHRASES
]


def profile_for(url: str) -> DomainProfile:
    host = normalize_hostname(urlparse(url).hostname or "")
    return DOMAIN_PROFILES.get(host, DEFAULT_PROFILE)


def strip_noise_sentences(text: str) -> str:
    for pattern in _NOISE_SENTENCES:
        text = pattern.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def _decompose_all(elements) -> None:
    for el in elements:
        # A match nested inside an earlier match is already gone.
        if not el.decomposed:
            el.decompose()


def _class_prefix_matcher(name: str):
    def match(tag) -> bool:
        return any(c.lower().startswith(name) for c in (tag.get("class") or []))

    return match


class ContentReducer:
    """Processing layer component: reduce raw HTML to recipe-relevant text.

    Rules:
    - Unwanted regions are stripped before the main region is isolated
    - The main image is located on the untouched document
    - Never return less than ``min_text_length`` characters
    """

    def __init__(self, *, min_text_length: int = MIN_REDUCED_TEXT_LENGTH, image_locator: ImageLocator | None = None):
        self._min_text_length = int(min_text_length)
        self._images = image_locator or ImageLocator()

    def reduce(self, html: str, source_url: str) -> ReducedContent:
        soup = BeautifulSoup(html, "lxml")
        profile = profile_for(source_url)

        title = self._extract_title(soup)
        image_url = self._images.locate(soup, source_url=source_url)

        self._strip_unwanted(soup, profile)
        region = self._find_main_region(soup, profile)
        text = _WHITESPACE.sub(" ", region.get_text(" ")).strip()
        text = strip_noise_sentences(text)

        if len(text) < self._min_text_length:
            raise InsufficientContentError(
                "Unable to extract sufficient content from the webpage",
                detail=f"text_length={len(text)} min={self._min_text_length}",
            )

        logger.info(
            "content_reduced",
            url=source_url,
            text_length=len(text),
            has_image=image_url is not None,
            has_title=title is not None,
        )
        return ReducedContent(text=text, image_url=image_url, title=title)

    @staticmethod
    def _extract_title(soup: BeautifulSoup) -> str | None:
        og = soup.find("meta", attrs={"property": "og:title"})
        if og is not None and str(og.get("content") or "").strip():
            return str(og.get("content")).strip()
        if soup.title is not None:
            title = _WHITESPACE.sub(" ", soup.title.get_text()).strip()
            return title or None
        return None

    @staticmethod
    def _strip_unwanted(soup: BeautifulSoup, profile: DomainProfile) -> None:
        for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
            comment.extract()
        _decompose_all(soup.find_all(_ALWAYS_DROP))

        for selector in profile.noise_selectors:
            if selector.startswith("."):
                # Class names match by prefix: ".comments" also drops "comments-area".
                _decompose_all(soup.find_all(_class_prefix_matcher(selector[1:].lower())))
            else:
                _decompose_all(soup.select(selector))

    @staticmethod
    def _find_main_region(soup: BeautifulSoup, profile: DomainProfile):
        for selector in profile.content_selectors:
            candidate = soup.select_one(selector)
            if candidate is not None and candidate.get_text(strip=True):
                return candidate
        return soup.body or soup
