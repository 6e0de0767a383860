"""Source, channel and competitor schemas.

A DataSource describes where raw data comes from and how far it can be
trusted. Sources are frozen: a reliability update produces a new instance
so signals that captured the old source keep their snapshot.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SourceType(str, Enum):
    """Kind of external source a collector polls."""

    RSS = "rss"
    API = "api"
    WEB_SCRAPING = "web_scraping"
    JOB_BOARD = "job_board"
    PATENT_DB = "patent_db"
    SOCIAL = "social"


class AuthType(str, Enum):
    API_KEY = "api_key"
    BEARER_TOKEN = "bearer_token"
    OAUTH = "oauth"
    BASIC_AUTH = "basic_auth"


class AuthConfig(BaseModel):
    """Credentials attached to a source."""

    type: AuthType
    credentials: dict[str, str] = Field(default_factory=dict)

    model_config = {"frozen": True}


class RateLimit(BaseModel):
    """Request budget for one source."""

    requests_per_hour: int = Field(..., ge=0)
    requests_per_day: int = Field(..., ge=0)
    burst_limit: int = Field(..., ge=0)

    model_config = {"frozen": True}


class DataSource(BaseModel):
    """An external source of raw competitor data.

    Attributes:
        id: Stable source identifier (used as credibility cache key)
        name: Human readable name
        type: Source kind
        url: Endpoint or page URL
        authentication: Optional credentials
        rate_limit: Request budget
        reliability: Historical reliability in [0, 1]
    """

    id: str
    name: str
    type: SourceType
    url: str
    authentication: Optional[AuthConfig] = None
    rate_limit: RateLimit
    reliability: float = Field(..., ge=0.0, le=1.0)

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "id": "acme-blog",
                    "name": "Acme Engineering Blog",
                    "type": "rss",
                    "url": "https://engineering.acme.com/feed.xml",
                    "rate_limit": {
                        "requests_per_hour": 24,
                        "requests_per_day": 288,
                        "burst_limit": 5,
                    },
                    "reliability": 0.9,
                }
            ]
        },
    }

    def with_reliability(self, reliability: float) -> "DataSource":
        """Return a copy of this source with a new reliability value."""
        return self.model_copy(update={"reliability": max(0.0, min(1.0, reliability))})


class ChannelType(str, Enum):
    PRODUCT_UPDATES = "product_updates"
    PRICING = "pricing"
    JOB_POSTINGS = "job_postings"
    PATENTS = "patents"
    TECH_BLOGS = "tech_blogs"
    SOCIAL_MEDIA = "social_media"


class Frequency(str, Enum):
    REALTIME = "realtime"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


class ChannelFilter(BaseModel):
    """Keyword, regex or content-type filter on a channel."""

    type: str = Field(..., pattern="^(keyword|regex|content_type)$")
    value: str
    include: bool = True


class MonitoringChannel(BaseModel):
    """A monitored stream of one kind of competitor data."""

    type: ChannelType
    source: DataSource
    frequency: Frequency = Frequency.DAILY
    filters: list[ChannelFilter] = Field(default_factory=list)
    enabled: bool = True

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False


class CompetitorTarget(BaseModel):
    """A competitor being monitored."""

    id: str
    name: str
    domain: str
    priority: str = Field(default="medium", pattern="^(low|medium|high|critical)$")
