import re

_TAG_RE = re.compile(r"<[^>]*>?", re.MULTILINE)


def strip_html(html: str | None) -> str:
    """Remove markup tags, leaving the text between them untouched."""
    if not html:
        return ""
    return _TAG_RE.sub("", html)
