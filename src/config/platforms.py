"""Static table of collection platforms.

Each entry describes one external source: how to reach it (RSS feed URL or
crawler type), how many items to take per run, and its timeout/retry policy.
Adding a platform is a data-table change; a new collection method also needs
a Source Adapter registered under that method.
"""

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class PlatformType(str, Enum):
    """Kind of organisation behind a platform."""

    CORPORATE = "corporate"
    EDUCATIONAL = "educational"
    MEDIA = "media"
    COMMUNITY = "community"
    PERSONAL = "personal"


class CollectionMethod(str, Enum):
    """How a platform's items are fetched."""

    RSS = "rss"
    CRAWLER = "crawler"
    API = "api"


class PlatformConfig(BaseModel):
    """Descriptor for a single collection platform."""

    id: str = Field(..., min_length=1, description="Globally unique platform id")
    name: str = Field(..., description="Display name")
    type: PlatformType
    base_url: str
    description: str = ""
    is_active: bool = True
    collection_method: CollectionMethod
    rss_url: str | None = None
    crawler_type: str | None = None
    channel_name: str | None = Field(
        None, description="Channel under a multi-channel platform (e.g. a YouTube channel)"
    )
    limit: int = Field(default=5, ge=1)
    timeout_seconds: float | None = Field(default=None, gt=0)
    retries: int | None = Field(default=None, ge=1)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_method_parameters(self) -> "PlatformConfig":
        """Each collection method needs its source-specific parameter."""
        if self.collection_method == CollectionMethod.RSS and not self.rss_url:
            raise ValueError(f"Platform {self.id}: rss collection requires rss_url")
        if self.collection_method == CollectionMethod.CRAWLER and not self.crawler_type:
            raise ValueError(f"Platform {self.id}: crawler collection requires crawler_type")
        return self

    @property
    def display_name(self) -> str:
        """Name shown on articles; includes the channel for multi-channel platforms."""
        if self.channel_name:
            return f"{self.name} • {self.channel_name}"
        return self.name

    @property
    def is_educational(self) -> bool:
        return self.type == PlatformType.EDUCATIONAL


def _rss(id: str, name: str, type: PlatformType, base_url: str, rss_url: str, **kwargs) -> PlatformConfig:
    return PlatformConfig(
        id=id,
        name=name,
        type=type,
        base_url=base_url,
        collection_method=CollectionMethod.RSS,
        rss_url=rss_url,
        **kwargs,
    )


def _crawler(id: str, name: str, type: PlatformType, base_url: str, crawler_type: str, **kwargs) -> PlatformConfig:
    return PlatformConfig(
        id=id,
        name=name,
        type=type,
        base_url=base_url,
        collection_method=CollectionMethod.CRAWLER,
        crawler_type=crawler_type,
        **kwargs,
    )


_YOUTUBE_FEED = "https://www.youtube.com/feeds/videos.xml?channel_id="

PLATFORM_CONFIGS: dict[str, PlatformConfig] = {
    p.id: p
    for p in [
        # Corporate engineering blogs
        _rss("toss", "토스 기술블로그", PlatformType.CORPORATE, "https://toss.tech",
             "https://toss.tech/rss.xml", description="토스팀이 만드는 기술 이야기", limit=6),
        _rss("daangn", "당근마켓 기술블로그", PlatformType.CORPORATE, "https://medium.com/daangn",
             "https://medium.com/feed/daangn", description="당근마켓 팀의 기술 이야기", limit=6),
        _rss("kakao", "카카오 기술블로그", PlatformType.CORPORATE, "https://tech.kakao.com",
             "https://tech.kakao.com/feed/", description="카카오의 기술과 서비스 이야기", limit=6),
        _crawler("naver", "네이버 D2", PlatformType.CORPORATE, "https://d2.naver.com",
                 "naver-d2", description="네이버 개발자들의 기술 이야기", limit=6, timeout_seconds=30),
        _rss("woowahan", "우아한형제들", PlatformType.CORPORATE, "https://techblog.woowahan.com",
             "https://techblog.woowahan.com/feed/", description="우아한형제들의 기술 블로그", limit=6),
        _crawler("line", "LINE Engineering", PlatformType.CORPORATE, "https://engineering.linecorp.com/ko",
                 "line-engineering", description="LINE의 기술과 개발 문화", limit=8, timeout_seconds=45),
        _rss("banksalad", "뱅크샐러드 기술블로그", PlatformType.CORPORATE, "https://blog.banksalad.com",
             "https://blog.banksalad.com/rss.xml", description="뱅크샐러드 팀의 기술 이야기"),
        _rss("coupang", "쿠팡 기술블로그", PlatformType.CORPORATE, "https://medium.com/coupang-engineering",
             "https://medium.com/feed/coupang-engineering", description="쿠팡의 대규모 시스템과 기술 경험"),
        _rss("socar", "쏘카 기술블로그", PlatformType.CORPORATE, "https://tech.socarcorp.kr",
             "https://tech.socarcorp.kr/feed", description="쏘카의 기술과 개발 경험"),
        # Media
        _rss("yozm", "요즘IT", PlatformType.MEDIA, "https://yozm.wishket.com",
             "https://yozm.wishket.com/magazine/feed/", description="IT 개발자와 기획자를 위한 전문 미디어"),
        _crawler("outstanding", "아웃스탠딩", PlatformType.MEDIA, "https://outstanding.kr/category/best",
                 "outstanding", description="비즈니스와 테크 트렌드를 다루는 미디어", timeout_seconds=30),
        _crawler("eo", "EO 매거진", PlatformType.MEDIA, "https://eopla.net",
                 "eo", description="고품질 기술 매거진 및 트렌드"),
        # Community
        _crawler("gpters", "GPTERS 뉴스레터", PlatformType.COMMUNITY, "https://www.gpters.org",
                 "gpters", description="AI와 GPT 관련 뉴스레터", limit=4, timeout_seconds=50),
        # Course platforms
        _crawler("inflearn", "인프런", PlatformType.EDUCATIONAL, "https://www.inflearn.com",
                 "inflearn", description="실무 중심의 프로그래밍 강의 플랫폼", limit=8, timeout_seconds=30),
        _crawler("class101", "클래스101", PlatformType.EDUCATIONAL, "https://class101.net",
                 "class101", description="창작과 취미를 위한 온라인 클래스", limit=8, timeout_seconds=30),
        _crawler("coloso", "콜로소", PlatformType.EDUCATIONAL, "https://coloso.co.kr",
                 "coloso", description="실무진이 가르치는 창작 강의", limit=8, timeout_seconds=30),
        # YouTube channels share one platform name and differ by channel
        _rss("jocoding", "YouTube", PlatformType.EDUCATIONAL, "https://www.youtube.com/@조코딩",
             _YOUTUBE_FEED + "UCQNE2JmbasNYbjGAcuBiRRg", channel_name="조코딩",
             description="프로그래밍 교육 및 개발 관련 콘텐츠", limit=4),
        _rss("opentutorials", "YouTube", PlatformType.EDUCATIONAL, "https://www.youtube.com/@opentutorials",
             _YOUTUBE_FEED + "UCvc8kv-i5fvFTJBFAk6n1SA", channel_name="생활코딩",
             description="프로그래밍 교육의 대표 채널", limit=4),
        _rss("nomad_coders", "YouTube", PlatformType.EDUCATIONAL, "https://www.youtube.com/@nomadcoders",
             _YOUTUBE_FEED + "UCUpJs89fSBXNolQGOYKn0YQ", channel_name="노마드 코더",
             description="실무 중심 코딩 교육", limit=4),
        _rss("coding_with_john", "YouTube", PlatformType.EDUCATIONAL, "https://www.youtube.com/@CodingwithJohn",
             _YOUTUBE_FEED + "UC6V3E7ZYpfwZLMJoJgCqGGA", channel_name="Coding with John",
             description="Java 프로그래밍 튜토리얼", limit=4, is_active=False),
        _rss("programming_with_mosh", "YouTube", PlatformType.EDUCATIONAL,
             "https://www.youtube.com/@programmingwithmosh",
             _YOUTUBE_FEED + "UCWv7vMbMWH4-V0ZXdmDpPBA", channel_name="Programming with Mosh",
             description="프로그래밍 기초부터 고급까지", limit=4),
        # Global community feeds
        _rss("medium", "Medium", PlatformType.COMMUNITY, "https://medium.com",
             "https://medium.com/feed/tag/javascript", description="전 세계 개발자들의 기술 이야기", limit=3),
        _rss("hacker_news", "Hacker News", PlatformType.COMMUNITY, "https://news.ycombinator.com",
             "https://news.ycombinator.com/rss", description="지적 호기심을 자극하는 기술 뉴스", limit=3),
        _rss("dev_to", "DEV Community", PlatformType.COMMUNITY, "https://dev.to",
             "https://dev.to/feed", description="글로벌 개발자 커뮤니티 플랫폼", limit=3),
        _rss("freecodecamp", "freeCodeCamp", PlatformType.EDUCATIONAL, "https://www.freecodecamp.org",
             "https://www.freecodecamp.org/news/rss/", description="프로그래밍 학습 및 튜토리얼", limit=3),
        _rss("medium_ux_collective", "UX Collective", PlatformType.COMMUNITY, "https://uxdesign.cc",
             "https://uxdesign.cc/feed", description="UX 디자인 전문 미디움 퍼블리케이션", limit=3),
        _rss("medium_ux_writer", "Medium - UX 실무자들", PlatformType.PERSONAL, "https://medium.com",
             "https://medium.com/feed/tag/ux-design", description="Medium의 한국 UX/UI 디자이너 및 기획자들",
             limit=3),
        _rss("tistory_design", "티스토리 - UX/UI", PlatformType.COMMUNITY, "https://www.tistory.com",
             "https://www.tistory.com/category/UX%2FUI/rss", description="티스토리의 UX/UI 관련 블로그들",
             limit=1, is_active=False),
    ]
}


def get_platform(platform_id: str) -> PlatformConfig | None:
    """Look up a platform by id."""
    return PLATFORM_CONFIGS.get(platform_id)


def get_active_platforms() -> list[PlatformConfig]:
    """Return all platforms an operator has enabled, in table order."""
    return [p for p in PLATFORM_CONFIGS.values() if p.is_active]


def get_platforms_by_type(platform_type: PlatformType | str) -> list[PlatformConfig]:
    """Return active platforms of the given type."""
    platform_type = PlatformType(platform_type)
    return [p for p in get_active_platforms() if p.type == platform_type]


def get_platforms_by_method(method: CollectionMethod | str) -> list[PlatformConfig]:
    """Return active platforms collected with the given method."""
    method = CollectionMethod(method)
    return [p for p in get_active_platforms() if p.collection_method == method]
