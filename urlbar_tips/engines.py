from __future__ import annotations

from typing import Dict, Iterable, List, Optional
from urllib.parse import parse_qs

from .types import SearchEngine
from .utils import split_url

# Google country domains cover the English-speaking locales the tip targets.
# Bing and DuckDuckGo redirect their international domains to .com.
_GOOGLE_DOMAINS = [
    "www.google.ac",
    "www.google.as",
    "www.google.com.ai",
    "www.google.com.au",
    "www.google.bs",
    "www.google.vg",
    "www.google.ca",
    "www.google.co.ck",
    "www.google.fm",
    "www.google.com.fj",
    "www.google.com.jm",
    "www.google.je",
    "www.google.ki",
    "www.google.ie",
    "www.google.im",
    "www.google.co.nz",
    "www.google.com.pr",
    "www.google.ms",
    "www.google.com.nf",
    "www.google.com.pg",
    "www.google.com.ph",
    "www.google.pn",
    "www.google.com.sg",
    "www.google.sh",
    "www.google.com.vc",
    "www.google.ws",
    "www.google.com.sl",
    "www.google.com.sb",
    "www.google.co.za",
    "www.google.to",
    "www.google.tt",
    "www.google.co.uk",
    "www.google.com",
    "www.google.co.vi",
]

SUPPORTED_ENGINES: Dict[str, List[str]] = {
    "Bing": ["www.bing.com"],
    "DuckDuckGo": ["duckduckgo.com", "start.duckduckgo.com"],
    "Google": [
        homepage
        for domain in _GOOGLE_DOMAINS
        for homepage in (domain, f"{domain}/webhp")
    ],
}

# Homepages whose search results page shares the same path and differs only by
# this query parameter.
RESULTS_QUERY_PARAMS: Dict[str, str] = {
    "duckduckgo.com": "q",
}

NEWTAB_URLS = ("about:newtab", "about:home")


def is_newtab_url(url: str) -> bool:
    return url in NEWTAB_URLS


def find_default_engine(engines: Iterable[SearchEngine]) -> Optional[SearchEngine]:
    for engine in engines:
        if engine.is_default:
            return engine
    return None


def normalize_homepage_url(url: str) -> Optional[str]:
    parts = split_url(url)
    if parts is None:
        return None
    value = f"{parts.hostname}{parts.path}"
    if value.endswith("/"):
        value = value[:-1]
    return value


def is_engine_homepage(engine_name: str, url: str) -> bool:
    homepages = SUPPORTED_ENGINES.get(engine_name)
    if not homepages:
        return False
    normalized = normalize_homepage_url(url)
    if normalized is None or normalized not in homepages:
        return False
    results_param = RESULTS_QUERY_PARAMS.get(normalized)
    if results_param is not None:
        query = parse_qs(split_url(url).query, keep_blank_values=True)
        if results_param in query:
            return False
    return True


async def is_default_engine_homepage(host, url: str) -> bool:
    """Check whether ``url`` is the homepage of the host's default engine.

    Returns False when the default engine is missing or not listed in
    SUPPORTED_ENGINES.
    """
    engines = await host.get_search_engines()
    default_engine = find_default_engine(engines)
    if default_engine is None:
        return False
    return is_engine_homepage(default_engine.name, url)
