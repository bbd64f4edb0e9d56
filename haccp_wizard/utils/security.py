"""Security helpers: masking tax ids and other long digit runs before logging."""
import re

# NIP is written as 1234567890, 123-456-78-90 or 123-45-67-890 (dashes or spaces).
NIP_LIKE = re.compile(
    r"\b\d{3}[- ]\d{3}[- ]\d{2}[- ]\d{2}\b"
    r"|\b\d{3}[- ]\d{2}[- ]\d{2}[- ]\d{3}\b"
    r"|\b\d{10,}\b"
)

def mask_pii(text: str) -> str:
    return NIP_LIKE.sub("[REDACTED]", text)
