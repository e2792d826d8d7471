import re
from typing import Optional
from urllib.parse import quote

# "generate an image of a cat", "Draw a picture of the sea", "make photo sunset"
_IMAGE_REQUEST = re.compile(
    r"(?:generate|create|draw|make) (?:an? )?(?:image|picture|photo) (?:of )?(.+)",
    re.I,
)

# characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def match_image_request(text: Optional[str]) -> Optional[str]:
    """Return the subject of an image-generation request, or None."""
    if not text:
        return None
    m = _IMAGE_REQUEST.search(text)
    return m.group(1) if m else None


def image_url_for(subject: str, base_url: str) -> str:
    return f"{base_url}{quote(subject, safe=_URI_COMPONENT_SAFE)}"


def build_image_reply(subject: str, base_url: str) -> str:
    url = image_url_for(subject, base_url)
    return f"Here is the image of **{subject}** you requested:\n\n![{subject}]({url})"
