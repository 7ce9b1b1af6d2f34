"""Scrape article and event pages into slot payload fields."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Iterable, Iterator
from urllib.parse import urljoin

import httpx
import structlog
from bs4 import BeautifulSoup


logger = structlog.get_logger(__name__)

ARTICLE_TYPES = {"Article", "BlogPosting", "NewsArticle"}
EVENT_TYPES = {"Event", "BusinessEvent", "EducationEvent", "SocialEvent"}
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
)


class ScrapeError(Exception):
    """Raised when a page cannot be fetched."""


@dataclass(slots=True)
class ScrapedArticle:
    url: str
    title: str = ""
    description: str = ""
    image: str = ""
    author: str = ""

    def fields_found(self) -> list[str]:
        return [
            name
            for name, value in asdict(self).items()
            if name != "url" and value
        ]

    def as_payload(self) -> dict[str, str]:
        return {
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "url": self.url,
            "author": self.author,
        }


@dataclass(slots=True)
class ScrapedEvent:
    title: str
    starts_at: datetime | None
    organization: str
    registration_url: str
    location_name: str = ""
    full_address: str = ""
    short_description: str = ""
    image_url: str = ""

    def as_payload(self) -> dict[str, str]:
        """Map onto event slot fields."""
        return {
            "title": self.title,
            "date": self.starts_at.date().isoformat() if self.starts_at else "",
            "time": self.starts_at.strftime("%H:%M") if self.starts_at else "",
            "location_name": self.location_name,
            "full_address": self.full_address,
            "short_description": self.short_description,
            "image_url": self.image_url,
            "organization": self.organization,
            "registration_url": self.registration_url,
            "event_badge": "In-Person",
        }


def _json_ld_items(soup: BeautifulSoup) -> Iterator[dict[str, Any]]:
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(script.string or script.get_text() or "")
        except json.JSONDecodeError:
            logger.warning("scrape.json_ld.invalid")
            continue
        items = data if isinstance(data, list) else [data]
        for item in items:
            if not isinstance(item, dict):
                continue
            graph = item.get("@graph")
            if isinstance(graph, list):
                yield from (entry for entry in graph if isinstance(entry, dict))
            else:
                yield item


def _has_type(item: dict[str, Any], types: set[str]) -> bool:
    value = item.get("@type")
    if isinstance(value, list):
        return any(entry in types for entry in value)
    return value in types


def _meta(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()


def _text(soup: BeautifulSoup, selector: str) -> str:
    tag = soup.select_one(selector)
    return tag.get_text(strip=True) if tag is not None else ""


def _first(values: Iterable[str]) -> str:
    return next((value for value in values if value), "")


def _absolute(url: str, base_url: str) -> str:
    if not url:
        return ""
    return url if url.startswith("http") else urljoin(base_url, url)


def _image_from_json_ld(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return str(value.get("url") or "")
    if isinstance(value, list) and value:
        return _image_from_json_ld(value[0])
    return ""


def _author_from_json_ld(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return str(value.get("name") or "")
    if isinstance(value, list) and value:
        return _author_from_json_ld(value[0])
    return ""


def parse_article(html: str, url: str) -> ScrapedArticle:
    """Extract insight fields, preferring JSON-LD over meta tag fallbacks."""
    soup = BeautifulSoup(html, "html.parser")
    article = ScrapedArticle(url=url)

    structured = next(
        (item for item in _json_ld_items(soup) if _has_type(item, ARTICLE_TYPES)),
        None,
    )
    if structured is not None:
        article.title = str(structured.get("headline") or structured.get("name") or "")
        article.description = str(structured.get("description") or "")
        article.author = _author_from_json_ld(structured.get("author"))
        article.image = _absolute(_image_from_json_ld(structured.get("image")), url)

    if not article.title:
        article.title = _first(
            (
                _meta(soup, property="og:title"),
                _meta(soup, name="twitter:title"),
                _text(soup, "h1"),
                _text(soup, "title"),
            )
        )
    if not article.description:
        article.description = _first(
            (
                _meta(soup, property="og:description"),
                _meta(soup, name="description"),
                _meta(soup, name="twitter:description"),
            )
        )
    if not article.image:
        hero = soup.select_one('img[class*="hero"]') or soup.select_one(
            'img[class*="featured"]'
        )
        article.image = _absolute(
            _first(
                (
                    _meta(soup, property="og:image"),
                    _meta(soup, name="twitter:image"),
                    (hero.get("src") or "") if hero is not None else "",
                )
            ),
            url,
        )
    if not article.author:
        article.author = _first(
            (
                _meta(soup, name="author"),
                _meta(soup, property="article:author"),
                _text(soup, '[rel="author"]'),
                _text(soup, ".author"),
                _text(soup, '[class*="author"]'),
            )
        )
    return article


def _parse_start(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed.replace(tzinfo=None)


def parse_events(html: str, url: str, organization: str) -> list[ScrapedEvent]:
    """Extract JSON-LD events published on an organization's events page."""
    soup = BeautifulSoup(html, "html.parser")
    events: list[ScrapedEvent] = []
    for item in _json_ld_items(soup):
        if not _has_type(item, EVENT_TYPES):
            continue
        title = str(item.get("name") or "").strip()
        if not title:
            continue
        location = item.get("location")
        location_name = ""
        full_address = ""
        if isinstance(location, dict):
            location_name = str(location.get("name") or "")
            address = location.get("address")
            if isinstance(address, dict):
                full_address = ", ".join(
                    str(address[key])
                    for key in (
                        "streetAddress",
                        "addressLocality",
                        "addressRegion",
                        "postalCode",
                    )
                    if address.get(key)
                )
            elif isinstance(address, str):
                full_address = address
        elif isinstance(location, str):
            location_name = location
        events.append(
            ScrapedEvent(
                title=title,
                starts_at=_parse_start(item.get("startDate")),
                organization=organization,
                registration_url=_absolute(str(item.get("url") or ""), url) or url,
                location_name=location_name,
                full_address=full_address,
                short_description=str(item.get("description") or "")[:280],
                image_url=_absolute(_image_from_json_ld(item.get("image")), url),
            )
        )
    return events


class PageScraper:
    """Fetch pages over HTTP and hand them to the parsers."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def fetch(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
                follow_redirects=True,
                headers={"User-Agent": USER_AGENT},
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("scrape.fetch.failed", url=url, error=str(exc))
            raise ScrapeError(f"Failed to fetch {url}: {exc}") from exc
        return response.text

    async def scrape_article(self, url: str) -> ScrapedArticle:
        article = parse_article(await self.fetch(url), url)
        logger.info("scrape.article.parsed", url=url, fields=article.fields_found())
        return article

    async def scrape_events(self, url: str, organization: str) -> list[ScrapedEvent]:
        events = parse_events(await self.fetch(url), url, organization)
        logger.info(
            "scrape.events.parsed", url=url, organization=organization, count=len(events)
        )
        return events


__all__ = [
    "PageScraper",
    "ScrapeError",
    "ScrapedArticle",
    "ScrapedEvent",
    "parse_article",
    "parse_events",
]
