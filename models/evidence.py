from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx


@dataclass(frozen=True)
class PageEvidence:
    """Everything observed for one fetched URL, as consumed by the detection core.

    ``dom`` is a parsed BeautifulSoup document (or ``None`` when the page could
    not be parsed). ``headers`` is always an ``httpx.Headers`` instance so that
    lookups are case-insensitive and repeated headers are preserved.
    """
    url: str
    final_url: str = ""
    status_code: int = 0
    response_time: float = 0.0 # milliseconds
    html: str = ""
    dom: Optional[Any] = None
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    cookies: Dict[str, str] = field(default_factory=dict)
    js: List[str] = field(default_factory=list) # Inline script bodies
    script_src: List[str] = field(default_factory=list)
    asset_urls: List[str] = field(default_factory=list)
    meta: Dict[str, str] = field(default_factory=dict)
    title: str = ""
    description: str = ""
    content_type: str = ""
    body_dom_element_count: int = 0
    text_content_length: int = 0
    script_count: int = 0
    image_count: int = 0
    link_count: int = 0
    form_count: int = 0
    redirect_count: int = 0
    fetch_failed: bool = False

    def __post_init__(self):
        if not isinstance(self.headers, httpx.Headers):
            object.__setattr__(self, "headers", httpx.Headers(self.headers or {}))
        if not self.final_url:
            object.__setattr__(self, "final_url", self.url)

    @classmethod
    def failed(cls, url: str) -> "PageEvidence":
        """Sentinel for a page that could not be fetched or parsed."""
        return cls(url=url, fetch_failed=True)
