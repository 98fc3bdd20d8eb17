"""Split model output into display text and embedded image payloads.

Image-generation tools hand their results back to the model, which is asked
to embed them in its reply as ``data:image/...;base64,...`` URIs.  The web UI
renders images separately, so they are pulled out of the message here.  A
reply that *is* an image (a bare data URI or URL) is passed through whole.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

NO_RESPONSE_MESSAGE = "[No response]"
DIRECT_IMAGE_MESSAGE = "Here you go!"
DIRECT_IMAGE_PREFIXES = ("data:image/", "http://", "https://")

IMAGE_DATA_URI = re.compile(r"data:image/[\w.+-]+;base64,[A-Za-z0-9+/=]+", re.IGNORECASE)


@dataclass(frozen=True)
class DecomposedResponse:
    message: str
    image: Optional[str] = None
    images: Optional[List[str]] = None


def extract_images(text: str) -> List[str]:
    """Return every embedded image data URI in order of appearance."""
    return IMAGE_DATA_URI.findall(text)


def decompose(raw_text: Optional[str]) -> DecomposedResponse:
    if raw_text is None:
        return DecomposedResponse(message=NO_RESPONSE_MESSAGE)

    trimmed = raw_text.strip()
    if trimmed.startswith(DIRECT_IMAGE_PREFIXES):
        return DecomposedResponse(message=DIRECT_IMAGE_MESSAGE, image=trimmed)

    found = extract_images(trimmed)
    message = trimmed
    # Stripping one URI can splice its neighbours into a new one; those are
    # removed too but were never in the reply, so they are not reported.
    while IMAGE_DATA_URI.search(message):
        message = IMAGE_DATA_URI.sub("", message).strip()

    if not found:
        return DecomposedResponse(message=trimmed)
    if len(found) == 1:
        return DecomposedResponse(message=message, image=found[0])
    return DecomposedResponse(message=message, images=found)
