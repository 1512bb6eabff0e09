"""본문(HTML) 처리: 이미지/첨부파일 스토리지 키 추출, 텍스트 변환"""
import html
import re
from urllib.parse import unquote, urlparse

import bleach

_RE_IMG_SRC = re.compile(r"<img[^>]+src=\"([^\"]+)\"", re.IGNORECASE)
_RE_TAG = re.compile(r"<[^>]*>")
_RE_SPACES = re.compile(r"\s+")

PREVIEW_LENGTH = 140

# 에디터가 만들어내는 태그만 허용 (본문 이미지는 <img src> 로 유지)
ALLOWED_TAGS = [
    "p", "br", "span", "strong", "b", "em", "i", "u", "s", "hr",
    "h1", "h2", "h3", "h4", "blockquote", "code", "pre",
    "ul", "ol", "li", "a", "img",
]
ALLOWED_ATTRIBUTES = {
    "a": ["href", "title", "target", "rel"],
    "img": ["src", "alt", "width", "height"],
}
ALLOWED_PROTOCOLS = ["http", "https", "mailto"]


def storage_key_from_url(url: str, prefix: str, host: str = "") -> str | None:
    """
    스토리지 공개 URL → 버킷 내 키 ("{prefix}/<path>")
    prefix 네임스페이스 밖이거나 다른 호스트의 URL이면 None
    """
    if not url:
        return None
    parsed = urlparse(url)
    if host and parsed.netloc and parsed.netloc != host:
        return None

    marker = f"/{prefix}/"
    path = unquote(parsed.path)
    if not path.startswith(marker) or len(path) == len(marker):
        return None
    return path.lstrip("/")


def extract_image_keys(content: str, prefix: str, host: str = "") -> list[str]:
    """본문의 <img src="..."> 중 이미지 네임스페이스에 속한 것만 키로 변환"""
    if not content:
        return []
    keys = []
    for src in _RE_IMG_SRC.findall(content):
        key = storage_key_from_url(src, prefix, host)
        if key is not None:
            keys.append(key)
    return keys


def extract_attachment_keys(attached_files: list[dict] | None, prefix: str, host: str = "") -> list[str]:
    keys = []
    for attached in attached_files or []:
        key = storage_key_from_url(attached.get("url", ""), prefix, host)
        if key is not None:
            keys.append(key)
    return keys


def strip_html(content: str) -> str:
    """HTML 태그 제거 + 엔티티 디코딩 + 공백 정리"""
    if not content:
        return ""
    text = html.unescape(_RE_TAG.sub("", content))
    return _RE_SPACES.sub(" ", text).strip()


def make_preview(content: str, max_length: int = PREVIEW_LENGTH) -> str:
    return strip_html(content)[:max_length]


def sanitize_html(content: str) -> str:
    """허용 목록 밖의 태그/속성/URL 스킴 제거 (스크립트, 이벤트 핸들러, javascript: 링크 등)"""
    return bleach.clean(
        content,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
    )
