"""Build PageEvidence from a fetched response using BeautifulSoup."""
import logging
from typing import Dict, List, Mapping, Optional

import httpx
from bs4 import BeautifulSoup

from fetch.http_client import FetchedPage
from models.evidence import PageEvidence

logger = logging.getLogger(__name__)

# Elements whose src/href counts as an external asset
ASSET_SELECTOR = "script[src], link[href], img[src], iframe[src], source[src], video[src], audio[src]"


def _asset_urls(soup: BeautifulSoup) -> List[str]:
    urls = []
    for el in soup.select(ASSET_SELECTOR):
        value = el.get("href") if el.name == "link" else el.get("src")
        if value:
            urls.append(value)
    return urls


def _meta_tags(soup: BeautifulSoup) -> Dict[str, str]:
    meta = {}
    for el in soup.find_all("meta"):
        if el.get("charset"):
            meta["charset"] = el["charset"]
        name = el.get("name") or el.get("property")
        content = el.get("content")
        if name and content:
            meta[name.lower()] = content
    return meta


def parse_html(
    url: str,
    html: str,
    headers: Optional[Mapping[str, str]] = None,
    cookies: Optional[Dict[str, str]] = None,
    status_code: int = 200,
    final_url: Optional[str] = None,
    response_time: float = 0.0,
    redirect_count: int = 0,
) -> PageEvidence:
    """Parse raw HTML plus response metadata into a PageEvidence bundle."""
    soup = BeautifulSoup(html or "", "html.parser")
    headers = httpx.Headers(headers or {})

    title_el = soup.find("title")
    title = title_el.get_text().strip() if title_el else ""
    description_el = soup.find("meta", attrs={"name": "description"})
    description = (description_el.get("content") or "") if description_el else ""

    body = soup.body
    body_elements = body.find_all(True) if body else []
    text_content_length = len(body.get_text().strip()) if body else 0

    scripts = soup.find_all("script")
    inline_js = [s.get_text() for s in scripts if s.get_text().strip()]
    script_src = [s["src"] for s in scripts if s.get("src")]

    evidence = PageEvidence(
        url=url,
        final_url=final_url or url,
        status_code=status_code,
        response_time=response_time,
        html=html or "",
        dom=soup,
        headers=headers,
        cookies=dict(cookies or {}),
        js=inline_js,
        script_src=script_src,
        asset_urls=_asset_urls(soup),
        meta=_meta_tags(soup),
        title=title,
        description=description,
        content_type=headers.get("content-type", ""),
        body_dom_element_count=len(body_elements),
        text_content_length=text_content_length,
        script_count=len(scripts),
        image_count=len(soup.find_all("img")),
        link_count=len(soup.find_all("link")),
        form_count=len(soup.find_all("form")),
        redirect_count=redirect_count,
    )
    logger.debug(
        f"Parsed {url}: {evidence.body_dom_element_count} body elements, "
        f"{len(inline_js)} inline scripts, {len(evidence.asset_urls)} assets"
    )
    return evidence


def parse_response(url: str, page: FetchedPage) -> PageEvidence:
    response = page.response
    # Iterate the jar: the same cookie name may be set for several domains
    cookies = {cookie.name: cookie.value or "" for cookie in response.cookies.jar}
    return parse_html(
        url,
        response.text,
        headers=response.headers,
        cookies=cookies,
        status_code=response.status_code,
        final_url=str(response.url),
        response_time=page.response_time,
        redirect_count=page.redirect_count,
    )
