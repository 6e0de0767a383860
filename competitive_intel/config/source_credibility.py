"""Source credibility tables used by CredibilityAssessor.

Base scores per source type, known tech blogs, official-site URL shapes and
domain reputation. All values are 0.0-1.0.

Source type hierarchy (most to least factual):
1. patent_db, official company websites: 0.95
2. api: 0.9
3. job_board: 0.85
4. known tech blogs: 0.8
5. general RSS, third-party sites: 0.6
6. social: 0.3
"""

import re
from typing import Dict, List, Pattern, Tuple

# (factual, timeliness, expertise, bias, factor description)
SOURCE_TYPE_BASE_SCORES: Dict[str, Tuple[float, float, float, float, str]] = {
    "api": (0.9, 0.9, 0.8, 0.5, "Official API source"),
    "job_board": (0.85, 0.9, 0.7, 0.8, "Job posting platform"),
    "patent_db": (0.95, 0.7, 0.9, 0.9, "Official patent database"),
    "social": (0.3, 0.9, 0.4, 0.3, "Social media source - high speculation risk"),
}

RSS_TECH_BLOG_SCORES = (0.8, 0.5, 0.9, 0.5, "Established tech blog")
RSS_GENERAL_SCORES = (0.6, 0.5, 0.6, 0.5, "General RSS source")
OFFICIAL_SITE_SCORES = (0.95, 0.8, 1.0, 0.5, "Official company website")
THIRD_PARTY_SITE_SCORES = (0.6, 0.6, 0.5, 0.5, "Third-party website")
UNKNOWN_TYPE_SCORES = (0.5, 0.5, 0.5, 0.5, "Unknown source type")

KNOWN_TECH_BLOGS: List[str] = [
    "techcrunch.com",
    "venturebeat.com",
    "blog.stripe.com",
    "engineering.uber.com",
    "netflixtechblog.com",
    "eng.lyft.com",
    "medium.com/airbnb-engineering",
]

OFFICIAL_SITE_PATTERNS: List[Pattern[str]] = [
    re.compile(r"^https?://(?:www\.)?[^/]+\.com/(?:pricing|features|about|blog)"),
    re.compile(r"^https?://(?:www\.)?[^/]+\.(?:com|org|net)/?$"),
]

HIGH_REPUTATION_DOMAINS: Dict[str, float] = {
    "github.com": 0.9,
    "stackoverflow.com": 0.9,
    "techcrunch.com": 0.9,
    "venturebeat.com": 0.9,
    "reuters.com": 0.9,
    "bloomberg.com": 0.9,
}

LOW_REPUTATION_DOMAINS: Dict[str, float] = {
    "blogspot.com": 0.4,
    "wordpress.com": 0.4,
    "medium.com": 0.4,
}

# Suffix -> reputation, checked in order
DOMAIN_SUFFIX_REPUTATION: List[Tuple[str, float]] = [
    (".edu", 0.95),
    (".gov", 0.95),
    (".com", 0.6),
    (".org", 0.6),
]

DEFAULT_DOMAIN_REPUTATION = 0.5
INVALID_URL_REPUTATION = 0.3

HIGH_REPUTATION_THRESHOLD = 0.7
LOW_REPUTATION_THRESHOLD = 0.3

CREDIBILITY_CACHE_TTL_SECONDS = 24 * 60 * 60
