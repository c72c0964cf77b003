"""Encyclopedic agent: Wikipedia summaries and sections plus Wikidata facts.

``get_enhanced_info`` runs three independent sub-fetches concurrently:

* the page summary (REST ``page/summary``),
* a Wikidata SPARQL query chosen by entity type,
* topical sections of the article (MediaWiki ``action=parse``).

Each sub-fetch degrades to an empty field on failure, so the call never
raises.  Confidence reflects how much of the snapshot was filled.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime
from typing import Any
from urllib.parse import quote

import httpx
from bs4 import BeautifulSoup

from reelchat.core.service.metrics import AGENT_REQUESTS_TOTAL
from reelchat.infra.telemetry import (
    ATTR_ENTITY_CONFIDENCE,
    ATTR_ENTITY_NAME,
    ATTR_ENTITY_TYPE,
    SPAN_ENCYCLOPEDIA_LOOKUP,
    tracer,
)

from .models import EntityType, KnowledgeSnapshot, normalise_entity_type

logger = logging.getLogger(__name__)

AGENT_NAME = "encyclopedia"

# ---------------------------------------------------------------------------
# Section extraction
# ---------------------------------------------------------------------------

SECTIONS_BY_TYPE: dict[EntityType, tuple[str, ...]] = {
    "movie": ("Plot", "Production", "Reception", "Legacy", "Box office"),
    "actor": ("Early life", "Career", "Personal life", "Filmography"),
    "director": ("Early life", "Career", "Style", "Filmography", "Awards"),
}

SECTION_MAX_CHARS = 500
SECTION_MIN_CHARS = 50
ELLIPSIS = "..."

_CITATION_RE = re.compile(r"\[\d+\]")
_WHITESPACE_RE = re.compile(r"\s+")
_STRIP_TAGS = ["style", "script", "sup", "table", "h2", "h3", "h4"]
_STRIP_CLASSES = ("mw-editsection", "reference", "navbox", "hatnote")

# ---------------------------------------------------------------------------
# Confidence weights
# ---------------------------------------------------------------------------

SUMMARY_MIN_CHARS = 100
WEIGHT_SUMMARY = 0.4
WEIGHT_FACTS = 0.4
WEIGHT_SECTIONS = 0.2

# ---------------------------------------------------------------------------
# Wikidata SPARQL
# ---------------------------------------------------------------------------

_LABEL_SERVICE = 'SERVICE wikibase:label { bd:serviceParam wikibase:language "en". }'

SPARQL_MOVIE = """
SELECT DISTINCT ?item ?itemLabel ?director ?directorLabel ?releaseDate ?boxOffice WHERE {{
  ?item wdt:P31 wd:Q11424.
  ?item rdfs:label "{name}"@en.
  OPTIONAL {{ ?item wdt:P57 ?director. }}
  OPTIONAL {{ ?item wdt:P577 ?releaseDate. }}
  OPTIONAL {{ ?item wdt:P2142 ?boxOffice. }}
  {label_service}
}}
LIMIT 10"""

SPARQL_ACTOR = """
SELECT DISTINCT ?item ?itemLabel ?birthDate ?birthPlace ?birthPlaceLabel ?movies WHERE {{
  ?item wdt:P31 wd:Q5.
  ?item rdfs:label "{name}"@en.
  ?item wdt:P106 ?occupation.
  FILTER(?occupation IN (wd:Q33999, wd:Q10800557, wd:Q2259451))
  OPTIONAL {{ ?item wdt:P569 ?birthDate. }}
  OPTIONAL {{ ?item wdt:P19 ?birthPlace. }}
  OPTIONAL {{
    SELECT ?item (COUNT(?movie) AS ?movies) WHERE {{
      ?movie wdt:P31 wd:Q11424.
      ?movie wdt:P161 ?item.
    }} GROUP BY ?item
  }}
  {label_service}
}}
LIMIT 10"""

SPARQL_DIRECTOR = """
SELECT DISTINCT ?item ?itemLabel ?birthDate ?birthPlace ?birthPlaceLabel ?movies ?awards WHERE {{
  ?item wdt:P31 wd:Q5.
  ?item rdfs:label "{name}"@en.
  ?item wdt:P106 wd:Q2526255.
  OPTIONAL {{ ?item wdt:P569 ?birthDate. }}
  OPTIONAL {{ ?item wdt:P19 ?birthPlace. }}
  OPTIONAL {{
    SELECT ?item (COUNT(?movie) AS ?movies) WHERE {{
      ?movie wdt:P31 wd:Q11424.
      ?movie wdt:P57 ?item.
    }} GROUP BY ?item
  }}
  OPTIONAL {{
    SELECT ?item (COUNT(?award) AS ?awards) WHERE {{
      ?item wdt:P166 ?award.
    }} GROUP BY ?item
  }}
  {label_service}
}}
LIMIT 10"""

SPARQL_BY_TYPE: dict[EntityType, str] = {
    "movie": SPARQL_MOVIE,
    "actor": SPARQL_ACTOR,
    "director": SPARQL_DIRECTOR,
}

FACT_DIRECTOR = "Director"
FACT_RELEASE_DATE = "Release Date"
FACT_BOX_OFFICE = "Box Office"
FACT_BIRTH_DATE = "Birth Date"
FACT_BIRTH_PLACE = "Birth Place"
FACT_MOVIE_COUNT = "Movie Count"
FACT_MOVIES_DIRECTED = "Movies Directed"
FACT_AWARDS = "Awards"


def clean_section_text(text: str) -> str:
    """Strip citation markers, collapse whitespace and cap the length."""
    text = _CITATION_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    if len(text) > SECTION_MAX_CHARS:
        text = text[: SECTION_MAX_CHARS - len(ELLIPSIS)] + ELLIPSIS
    return text


def html_to_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(_STRIP_TAGS):
        tag.decompose()
    for css_class in _STRIP_CLASSES:
        for tag in soup.find_all(class_=css_class):
            tag.decompose()
    return soup.get_text(" ")


def escape_sparql_literal(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def build_sparql_query(entity_name: str, entity_type: EntityType) -> str:
    template = SPARQL_BY_TYPE[entity_type]
    return template.format(
        name=escape_sparql_literal(entity_name), label_service=_LABEL_SERVICE
    )


def compute_confidence(
    summary: str | None, facts: dict[str, Any], sections: dict[str, str]
) -> float:
    score = 0.0
    if summary and len(summary) > SUMMARY_MIN_CHARS:
        score += WEIGHT_SUMMARY
    if facts:
        score += WEIGHT_FACTS
    if sections:
        score += WEIGHT_SECTIONS
    return min(score, 1.0)


# ---------------------------------------------------------------------------
# Wikidata binding parsing
# ---------------------------------------------------------------------------


def _value(binding: dict[str, Any], key: str) -> str | None:
    cell = binding.get(key)
    if not isinstance(cell, dict):
        return None
    return cell.get("value")


def _iso_date(raw: str | None) -> str | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return None


def _as_int(raw: str | None) -> int | None:
    try:
        return int(raw) if raw is not None else None
    except ValueError:
        return None


def parse_wikidata_bindings(
    bindings: list[dict[str, Any]], entity_type: EntityType
) -> tuple[dict[str, str | int], list[str]]:
    """Fold SPARQL result rows into a fact mapping and related entities."""
    facts: dict[str, str | int] = {}
    related: list[str] = []

    for binding in bindings:
        if not isinstance(binding, dict):
            continue
        birth_date = _iso_date(_value(binding, "birthDate"))
        birth_place = _value(binding, "birthPlaceLabel")
        movies = _as_int(_value(binding, "movies"))

        if entity_type == "movie":
            director = _value(binding, "directorLabel")
            if _value(binding, "director") is not None and director:
                facts[FACT_DIRECTOR] = director
                if director not in related:
                    related.append(director)
            release = _iso_date(_value(binding, "releaseDate"))
            if release:
                facts[FACT_RELEASE_DATE] = release
            box_office = _value(binding, "boxOffice")
            if box_office:
                facts[FACT_BOX_OFFICE] = box_office
            continue

        if birth_date:
            facts[FACT_BIRTH_DATE] = birth_date
        if birth_place:
            facts[FACT_BIRTH_PLACE] = birth_place
        if entity_type == "actor":
            if movies is not None:
                facts[FACT_MOVIE_COUNT] = movies
        else:
            if movies is not None:
                facts[FACT_MOVIES_DIRECTED] = movies
            awards = _as_int(_value(binding, "awards"))
            if awards is not None:
                facts[FACT_AWARDS] = awards

    return facts, related


def _json_object(response: httpx.Response) -> dict[str, Any]:
    """Decoded JSON body; anything but an object is a ValueError."""
    data = response.json()
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------


class EncyclopedicAgent:
    """Builds a ``KnowledgeSnapshot`` for a movie, actor or director."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        rest_url: str,
        action_url: str,
        sparql_url: str,
    ) -> None:
        self._http = http
        self._rest_url = rest_url.rstrip("/")
        self._action_url = action_url
        self._sparql_url = sparql_url

    async def get_enhanced_info(
        self, entity_name: str, entity_type: str = "movie"
    ) -> KnowledgeSnapshot:
        kind = normalise_entity_type(entity_type)
        with tracer.start_as_current_span(SPAN_ENCYCLOPEDIA_LOOKUP) as span:
            span.set_attribute(ATTR_ENTITY_NAME, entity_name)
            span.set_attribute(ATTR_ENTITY_TYPE, kind)

            summary_part, wikidata_part, sections = await asyncio.gather(
                self._summary(entity_name),
                self._wikidata(entity_name, kind),
                self._sections(entity_name, kind),
            )
            summary, thumbnail = summary_part
            facts, related = wikidata_part

            snapshot = KnowledgeSnapshot(
                entity_name=entity_name,
                entity_type=kind,
                summary=summary,
                thumbnail_url=thumbnail,
                structured_facts=facts,
                related_entities=related,
                sections=sections,
                confidence=compute_confidence(summary, facts, sections),
            )
            span.set_attribute(ATTR_ENTITY_CONFIDENCE, snapshot.confidence)
            AGENT_REQUESTS_TOTAL.labels(
                agent=AGENT_NAME,
                status="ok" if snapshot.confidence > 0 else "empty",
            ).inc()
            return snapshot

    # ------------------------------------------------------------------
    # Sub-fetches; each returns an empty value on failure
    # ------------------------------------------------------------------

    async def _summary(self, entity_name: str) -> tuple[str | None, str | None]:
        title = quote(entity_name.replace(" ", "_"), safe="")
        try:
            response = await self._http.get(f"{self._rest_url}/page/summary/{title}")
            if response.status_code != httpx.codes.OK:
                return None, None
            data = _json_object(response)
        except (httpx.HTTPError, ValueError):
            logger.warning("Wikipedia summary failed for %r", entity_name, exc_info=True)
            return None, None
        thumbnail = data.get("thumbnail")
        source = thumbnail.get("source") if isinstance(thumbnail, dict) else None
        extract = data.get("extract")
        return (extract if isinstance(extract, str) and extract else None), source

    async def _wikidata(
        self, entity_name: str, entity_type: EntityType
    ) -> tuple[dict[str, str | int], list[str]]:
        query = build_sparql_query(entity_name, entity_type)
        try:
            response = await self._http.post(
                self._sparql_url,
                data={"query": query, "format": "json"},
                headers={"Accept": "application/sparql-results+json"},
            )
            response.raise_for_status()
            bindings = response.json()["results"]["bindings"]
        except (httpx.HTTPError, ValueError, KeyError, TypeError):
            logger.warning("Wikidata query failed for %r", entity_name, exc_info=True)
            return {}, []
        if not isinstance(bindings, list):
            logger.warning("Wikidata returned no binding list for %r", entity_name)
            return {}, []
        return parse_wikidata_bindings(bindings, entity_type)

    async def _parse(self, page: str, **params: Any) -> dict[str, Any]:
        response = await self._http.get(
            self._action_url,
            params={
                "action": "parse",
                "page": page,
                "format": "json",
                "formatversion": 2,
                "redirects": 1,
                **params,
            },
        )
        response.raise_for_status()
        parsed = _json_object(response).get("parse")
        return parsed if isinstance(parsed, dict) else {}

    async def _sections(
        self, entity_name: str, entity_type: EntityType
    ) -> dict[str, str]:
        wanted = {name.lower(): name for name in SECTIONS_BY_TYPE[entity_type]}
        try:
            toc = (await self._parse(entity_name, prop="sections")).get("sections", [])
        except (httpx.HTTPError, ValueError):
            logger.warning("Wikipedia sections failed for %r", entity_name, exc_info=True)
            return {}

        indices: dict[str, str] = {}
        if not isinstance(toc, list):
            toc = []
        for entry in toc:
            if not isinstance(entry, dict):
                continue
            name = wanted.get(str(entry.get("line", "")).strip().lower())
            if name is not None and name not in indices:
                indices[name] = str(entry.get("index"))

        sections: dict[str, str] = {}
        for name in SECTIONS_BY_TYPE[entity_type]:
            if name not in indices:
                continue
            try:
                parsed = await self._parse(
                    entity_name, prop="text", section=indices[name]
                )
            except (httpx.HTTPError, ValueError):
                logger.debug("Skipping section %r of %r", name, entity_name)
                continue
            html = parsed.get("text")
            if not isinstance(html, str):
                continue
            text = clean_section_text(html_to_text(html))
            if len(text) > SECTION_MIN_CHARS:
                sections[name] = text
        return sections
