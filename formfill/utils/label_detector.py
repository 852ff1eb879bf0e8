"""Label detection utilities for worksheet forms."""
import re
from typing import Optional

from formfill.config import LabelDetectionConfig, config

_LABEL_NOISE_RE = re.compile(r"[:*]+")
_SPACE_RE = re.compile(r"\s+")

# label keyword -> field type, first hit wins
_TYPE_HINTS = (
    (("email", "e-mail", "correo"), "email"),
    (("phone", "mobile", "tel", "teléfono", "telefono", "celular"), "tel"),
    (("date", "dob", "birth", "fecha", "nacimiento"), "date"),
    (("website", "url", "homepage", "sitio web"), "url"),
    (("age", "amount", "salary", "edad", "monto", "importe"), "number"),
)


def looks_like_label(text: Optional[str], cfg: Optional[LabelDetectionConfig] = None) -> bool:
    """Decide whether a cell's text reads like a form label rather than a value."""
    if not text or not isinstance(text, str):
        return False

    cfg = cfg or config.label_detection
    text = text.strip()
    if len(text) < cfg.min_label_length:
        return False

    lowered = text.lower()
    if lowered.startswith(("http", "www")):
        return False
    if "@" in text and not any(kw in lowered for kw in ("email", "correo", "mail")):
        return False

    if text.endswith(":"):
        return len(text) <= cfg.max_label_length_with_colon

    if not any(keyword in lowered for keyword in cfg.keywords):
        return False
    if len(text) > cfg.max_label_length_without_colon:
        return False
    # values such as "Order 12345" carry long digit runs
    if re.search(r"\d{3,}", text):
        return False
    return True


def clean_label(text: Optional[str]) -> str:
    """Strip colons, required markers and extra whitespace from a label."""
    text = _LABEL_NOISE_RE.sub("", text or "")
    return _SPACE_RE.sub(" ", text).strip()


def guess_field_type(label: Optional[str]) -> str:
    """Guess an input type from a label's wording; defaults to text."""
    words = set(re.findall(r"[\w\-]+", (label or "").lower()))
    lowered = (label or "").lower()
    for hints, field_type in _TYPE_HINTS:
        for hint in hints:
            if (" " in hint and hint in lowered) or hint in words:
                return field_type
    return "text"
