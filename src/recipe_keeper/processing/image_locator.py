"""Main recipe image detection.

Responsibilities:
- Find the single most likely "main recipe image" of a page
- Resolve it to an absolute URL

Rules:
- Best effort: never raises, returns None when nothing plausible is found
- Priority: Open Graph -> Twitter Card -> JSON-LD -> domain rules -> generic
  large-image heuristics -> any og:image variant
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from ..observability.logger import get_logger
from ..utils.validators import normalize_hostname

logger = get_logger(__name__)

MIN_CONTENT_IMAGE_WIDTH = 300

_THUMBNAIL_WORDS = re.compile(
    r"(?:^|[-_.])(thumb|thumbnail|thumbs|icon|favicon|logo|avatar|sprite|placeholder|banner|ad|ads|"
    r"small|mini|tiny|facebook|twitter|instagram|pinterest|social)(?=[-_.]|$)",
    re.IGNORECASE,
)
_HIGH_RES_WORDS = re.compile(
    r"(?:^|[-_.])(large|full|fullsize|original|hero|big|xl|xxl|2x|scaled|main)(?=[-_.]|$)",
    re.IGNORECASE,
)
_SIZE_IN_NAME = re.compile(r"(\d{2,4})x(\d{2,4})")

_CONTENT_CONTAINERS = (
    "article",
    "main",
    "[class*=recipe]",
    "[class*=content]",
    "[class*=post]",
)


def resolve_image_url(image_url: str, base_url: str) -> Optional[str]:
    """Resolve relative and protocol-relative image URLs against the page URL."""
    u = (image_url or "").strip()
    if not u or u.startswith("data:"):
        return None
    if u.startswith("//"):
        return f"https:{u}"
    return urljoin(base_url, u)


def _parse_srcset(srcset: str) -> list[tuple[str, float]]:
    """Parse a srcset attribute into (url, weight) pairs, in order.

    Width descriptors ("640w") weigh by width, density descriptors ("2x") by
    density; entries without a descriptor weigh 1.
    """
    out: list[tuple[str, float]] = []
    for part in (srcset or "").split(","):
        p = part.strip()
        if not p:
            continue
        pieces = p.split()
        url = pieces[0].strip()
        weight = 1.0
        if len(pieces) > 1:
            descriptor = pieces[1].strip().lower()
            try:
                weight = float(descriptor[:-1]) if descriptor[-1:] in ("w", "x") else 1.0
            except ValueError:
                weight = 1.0
        if url:
            out.append((url, weight))
    return out


def _filename(url: str) -> str:
    return (urlparse(url).path or "").rsplit("/", 1)[-1]


def _looks_like_thumbnail(url: str) -> bool:
    name = _filename(url)
    if _THUMBNAIL_WORDS.search(name):
        return True
    size = _SIZE_IN_NAME.search(name)
    return bool(size and int(size.group(1)) < MIN_CONTENT_IMAGE_WIDTH)


def _looks_high_res(url: str) -> bool:
    name = _filename(url)
    if _HIGH_RES_WORDS.search(name):
        return True
    size = _SIZE_IN_NAME.search(name)
    return bool(size and int(size.group(1)) >= 1000)


def _declared_width(img: Tag) -> Optional[int]:
    raw = str(img.get("width") or "").strip().lower().removesuffix("px")
    return int(raw) if raw.isdigit() else None


def _best_image_source(img: Tag) -> str:
    """Prefer the largest srcset candidate, then lazy-load attributes, then src."""
    for attr in ("srcset", "data-srcset", "data-lazy-srcset"):
        candidates = _parse_srcset(str(img.get(attr) or ""))
        if candidates:
            return max(candidates, key=lambda c: c[1])[0]
    for attr in ("data-src", "data-lazy-src", "data-original"):
        value = str(img.get(attr) or "").strip()
        if value:
            return value
    return str(img.get("src") or "").strip()


def _class_contains(tag: Tag, needle: str) -> bool:
    return any(needle in c.lower() for c in (tag.get("class") or []))


def _meta_content(soup: BeautifulSoup, key: str) -> str:
    for attr in ("property", "name"):
        tag = soup.find("meta", attrs={attr: key})
        if tag is not None and str(tag.get("content") or "").strip():
            return str(tag.get("content")).strip()
    return ""


def _image_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        for item in value:
            found = _image_value(item)
            if found:
                return found
        return ""
    if isinstance(value, dict):
        return _image_value(value.get("url") or value.get("contentUrl"))
    return ""


def _on_domain(host: str, domain: str) -> bool:
    return host == domain or host.endswith(f".{domain}")


def _walk_json_ld(data: Any) -> Iterable[dict]:
    if isinstance(data, list):
        for item in data:
            yield from _walk_json_ld(item)
    elif isinstance(data, dict):
        yield data
        if "@graph" in data:
            yield from _walk_json_ld(data["@graph"])


def _is_recipe_node(node: dict) -> bool:
    node_type = node.get("@type")
    if isinstance(node_type, list):
        return "Recipe" in node_type
    return node_type == "Recipe"


class ImageLocator:
    def locate(self, soup: BeautifulSoup, *, source_url: str) -> Optional[str]:
        try:
            return self._locate(soup, source_url)
        except Exception as e:
            logger.warning("main_image_detection_failed", url=source_url, error=str(e))
            return None

    def _locate(self, soup: BeautifulSoup, source_url: str) -> Optional[str]:
        host = normalize_hostname(urlparse(source_url).hostname or "")
        strategies = (
            lambda: _meta_content(soup, "og:image"),
            lambda: _meta_content(soup, "twitter:image") or _meta_content(soup, "twitter:image:src"),
            lambda: self._from_json_ld(soup),
            lambda: self._from_domain_rules(soup, host),
            lambda: self._from_content_images(soup),
            lambda: self._any_og_variant(soup),
        )
        for strategy in strategies:
            resolved = resolve_image_url(strategy(), source_url)
            if resolved:
                return resolved
        return None

    def _from_json_ld(self, soup: BeautifulSoup) -> str:
        fallback = ""
        for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
            try:
                data = json.loads(script.string or script.get_text() or "")
            except ValueError:
                continue
            for node in _walk_json_ld(data):
                image = _image_value(node.get("image"))
                if not image:
                    continue
                if _is_recipe_node(node):
                    return image
                fallback = fallback or image
        return fallback

    def _from_domain_rules(self, soup: BeautifulSoup, host: str) -> str:
        if _on_domain(host, "aniagotuje.pl"):
            for img in soup.find_all("img"):
                if _class_contains(img, "recipe"):
                    src = _best_image_source(img)
                    if src:
                        return src
        if _on_domain(host, "kwestiasmaku.com"):
            for img in soup.find_all("img"):
                if _class_contains(img, "featured"):
                    src = _best_image_source(img)
                    if src:
                        return src
            for img in soup.select(".entry-content img"):
                src = _best_image_source(img)
                if src:
                    return src
        return ""

    def _from_content_images(self, soup: BeautifulSoup) -> str:
        containers = [el for selector in _CONTENT_CONTAINERS for el in soup.select(selector)]
        images = [img for el in containers for img in el.find_all("img")] or soup.find_all("img")

        first_acceptable = ""
        for img in images:
            src = _best_image_source(img)
            if not src or src.startswith("data:"):
                continue
            width = _declared_width(img)
            if width is not None and width < MIN_CONTENT_IMAGE_WIDTH:
                continue
            if _looks_like_thumbnail(src):
                continue
            if _looks_high_res(src):
                return src
            first_acceptable = first_acceptable or src
        return first_acceptable

    def _any_og_variant(self, soup: BeautifulSoup) -> str:
        for tag in soup.find_all("meta"):
            key = str(tag.get("property") or tag.get("name") or "")
            if key.startswith("og:image") and str(tag.get("content") or "").strip():
                return str(tag.get("content")).strip()
        return ""
