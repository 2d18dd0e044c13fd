"""extractor.py — Regex-Based Intelligence Extraction
=====================================================

Pulls actionable identifiers out of a single scammer message.

Entity types extracted:
    1. UPI IDs       → local@provider for known Indian UPI providers
    2. Phone numbers → Indian mobiles: bare, +91 / 91 / 0 prefixed, 5+5 split
    3. URLs          → http(s)://, www., shorteners, bare domain.tld[/path]

Normalization strategy:
    - UPI IDs: lowercase (provider keywords match case-insensitively)
    - Phones:  bare 10-digit mobile (country code / trunk prefix stripped)
    - URLs:    lowercase, trailing sentence punctuation and slash stripped

``extract`` is pure and total: any string (empty, non-ASCII, adversarially
long) yields an ``ExtractedIntel``, possibly with empty sets. Recall is
preferred over precision: a 10-digit account number starting 6-9 is reported
as a phone number.
"""

import re
from typing import List, Set

from honeypot.models import ExtractedIntel
from honeypot.patterns import SCAM_PHRASES


# Known UPI provider handles (the part after '@')
UPI_PROVIDERS = (
    "paytm", "phonepe", "googlepay", "gpay", "okaxis", "okhdfcbank", "okicici",
    "oksbi", "ybl", "ibl", "axl", "apl", "upi", "axisbank", "hdfcbank", "icici",
    "sbi", "kotak", "pnb", "barodampay", "freecharge", "airtel", "jio", "aubank",
    "idfcbank", "indus", "federal", "yesbank", "rbl", "boi", "cnrb", "unionbank",
)


class IntelExtractor:
    """Stateless extractor for UPI IDs, phone numbers and URLs."""

    # ================================================================
    # UPI — local part cannot start inside another token; provider must
    # not continue into a domain (x@paytm.com is an email, not a VPA)
    # ================================================================
    UPI_PATTERN = re.compile(
        r"(?<![\w.\-@])([a-z0-9][a-z0-9._\-]{0,63}@(?:"
        + "|".join(sorted(UPI_PROVIDERS, key=len, reverse=True))
        + r"))\b(?!\.[a-z0-9])",
        re.IGNORECASE,
    )

    # ================================================================
    # PHONE — optional +91 / 91 / 0 prefix, then a 6-9 led mobile number,
    # contiguous or split 5+5 / 3+3+4; never part of a longer digit run
    # ================================================================
    PHONE_PATTERNS = (
        re.compile(r"(?<![\d+])(?:\+?91[\s\-]?|0)?([6-9]\d{9})(?!\d)"),
        re.compile(r"(?<![\d+])(?:\+?91[\s\-]?|0)?([6-9]\d{4})[\s\-](\d{5})(?!\d)"),
        re.compile(r"(?<![\d+])(?:\+?91[\s\-]?)?([6-9]\d{2})[\s\-](\d{3})[\s\-](\d{4})(?!\d)"),
    )

    # ================================================================
    # URL — scheme / www. prefixed first, then bare domains in the
    # remaining text so one link is never reported twice
    # ================================================================
    PREFIXED_URL = re.compile(
        r"(?:https?://|www\.)[^\s<>\"'{}|\\^`\[\]]{1,2048}",
        re.IGNORECASE,
    )
    BARE_URL = re.compile(
        r"(?<![@\w.\-/])"
        r"[a-z0-9][a-z0-9\-]{0,62}(?:\.[a-z0-9\-]{1,63}){0,4}"
        r"\.(?:com|in|net|org|info|biz|co|io|me|ly|gl|gd|gy|cc|xyz|top|online|site|"
        r"click|live|club|icu|buzz|link|app|shop|store|support|help)\b"
        r"(?![@\-])(?:/[^\s<>\"']{0,2048})?",
        re.IGNORECASE,
    )
    _TRAILING_PUNCT = ".,;:!?)]}'\"/"

    def extract(self, text: str) -> ExtractedIntel:
        """Extract all intelligence from one message. Never raises."""
        if not isinstance(text, str) or not text:
            return ExtractedIntel()
        return ExtractedIntel(
            upiIds=frozenset(self.extract_upi_ids(text)),
            phoneNumbers=frozenset(self.extract_phones(text)),
            urls=frozenset(self.extract_urls(text)),
        )

    def extract_upi_ids(self, text: str) -> Set[str]:
        return {match.group(1).lower() for match in self.UPI_PATTERN.finditer(text)}

    def extract_phones(self, text: str) -> Set[str]:
        phones: Set[str] = set()
        for pattern in self.PHONE_PATTERNS:
            for match in pattern.finditer(text):
                phones.add("".join(match.groups()))
        return phones

    def extract_urls(self, text: str) -> Set[str]:
        urls: Set[str] = set()
        remainder = text
        for match in self.PREFIXED_URL.finditer(text):
            url = self._clean_url(match.group(0))
            if url:
                urls.add(url)
        # Blank out prefixed links so their host is not matched again as bare
        remainder = self.PREFIXED_URL.sub(" ", remainder)
        for match in self.BARE_URL.finditer(remainder):
            url = self._clean_url(match.group(0))
            if url:
                urls.add(url)
        return urls

    def scam_phrases(self, text: str) -> List[str]:
        """Literal scam phrases present in the message, in table order."""
        if not isinstance(text, str):
            return []
        lowered = text.lower()
        return [phrase for phrase, _ in SCAM_PHRASES if phrase in lowered]

    def _clean_url(self, raw: str) -> str:
        url = raw.rstrip(self._TRAILING_PUNCT).lower()
        if url in ("www", "http:", "https:") or url.endswith("://"):
            return ""
        return url


# Module-level singleton
intel_extractor = IntelExtractor()


def extract(text: str) -> ExtractedIntel:
    """Module-level shortcut for ``IntelExtractor().extract``."""
    return intel_extractor.extract(text)
