"""patterns.py — Immutable Scam Rule Tables
===========================================

Weighted regex rules used by the signal scorers, grouped by scam category.
Each rule is ``(name, regex, weight, category)``; the pattern scorer sums the
weights of every matching rule and saturates the total into [0, 1].

Categories covered:
    - banking           : KYC, account freeze/block, card and bank details
    - credentialRequest : OTP / PIN / CVV / password solicitation
    - upiPayment        : UPI handles, collect requests, money transfer asks
    - lotteryPrize      : won / winner / claim prize narratives
    - phishingLinks     : click-here, shorteners, suspicious TLDs, APKs
    - fakeOffers        : work from home, guaranteed returns, instant loans
    - urgency           : time pressure phrases
    - contactRequests   : share details / call me / whatsapp

Every gap between keywords is bounded (``[^.!?\\n]{0,40}``) so a single regex
never scans past one sentence; matching stays linear in the input length.

The tables are built once at import time from tuples and exposed through a
frozen ``ScamRules`` bundle that scorers receive by injection.
"""

import re
from dataclasses import dataclass
from typing import NamedTuple, Pattern, Tuple

from honeypot.models import ScamCategory


# Bounded same-sentence gap between two keywords
_GAP = r"[^.!?\n]{0,40}"


class Rule(NamedTuple):
    name: str
    regex: Pattern
    weight: float
    category: ScamCategory


def _rules(category: ScamCategory, entries) -> Tuple[Rule, ...]:
    return tuple(
        Rule(name, re.compile(pattern, re.IGNORECASE), weight, category)
        for name, pattern, weight in entries
    )


# ═══════════════════════════════════════════════════════════════════════
# CATEGORY RULES — (name, regex, weight)
# ═══════════════════════════════════════════════════════════════════════

BANKING_RULES = _rules(ScamCategory.BANKING, [
    ("kyc_update",        r"\b(?:e|re|c)?[\s\-]?kyc\b",                                          0.35),
    ("verify_account",    rf"\bverify{_GAP}\b(?:account|kyc|identity|a/c)\b",                     0.40),
    ("update_details",    rf"\bupdate{_GAP}\b(?:account|kyc|details|pan|aadhaar|aadhar)\b",       0.30),
    ("account_threat",    rf"\b(?:account|a/c|card|wallet){_GAP}\b(?:block|suspend|freez|deactivat|lock|clos|terminat)\w*", 0.45),
    ("threat_account",    rf"\b(?:block|suspend|freez|deactivat|lock)\w*{_GAP}\b(?:account|a/c|card|upi)\b", 0.40),
    ("card_details",      r"\b(?:card|debit\s*card|credit\s*card)\s*(?:details|number|info|expiry)\b", 0.40),
    ("bank_details",      r"\b(?:bank|account)\s*(?:details|number|no\.?)\b",                     0.35),
    ("refund_pending",    rf"\b(?:refund|cashback){_GAP}\b(?:process|pending|credit|initiat)\w*", 0.30),
    ("unauthorized",      r"\b(?:unauthori[sz]ed|suspicious)\s*(?:access|transaction|activity|login)\b", 0.35),
])

CREDENTIAL_RULES = _rules(ScamCategory.CREDENTIAL_REQUEST, [
    ("otp_request",       r"\b(?:send|share|tell|give|provide|forward|enter|confirm|read)\s+(?:me\s+|us\s+)?(?:the\s+|your\s+|that\s+)?(?:otp|pin|cvv|mpin|code|password|passcode)\b", 0.60),
    ("otp_mention",       r"\b(?:otp|one\s*time\s*password|verification\s*code)\b",                0.40),
    ("secret_code",       r"\b(?:cvv|atm\s*pin|card\s*pin|upi\s*pin|mpin|m[\s\-]pin|net\s*banking\s*password)\b", 0.45),
    ("digit_code",        r"\b\d\s*[\-]?\s*digit\s*(?:code|otp|pin|password)\b",                  0.40),
    ("what_is_otp",       r"\bwhat\s+(?:is|was)\s+(?:the\s+|your\s+)?(?:otp|code|pin)\b",          0.45),
])

UPI_RULES = _rules(ScamCategory.UPI_PAYMENT, [
    ("upi_handle",        r"[\w.\-]{2,64}@(?:paytm|phonepe|googlepay|gpay|okaxis|okhdfcbank|okicici|oksbi|ybl|ibl|axl|apl|upi)\b", 0.45),
    ("upi_mention",       r"\b(?:upi\s*(?:id|address|handle|transfer)|vpa|bhim)\b",                0.30),
    ("collect_request",   r"\b(?:collect\s*request|payment\s*(?:request|link)|pay\s*(?:link|request))\b", 0.35),
    ("send_money",        r"\b(?:send|transfer|pay)\s+(?:me\s+|us\s+)?(?:the\s+)?(?:money|amount|rs\.?|₹|inr|\d+)", 0.45),
    ("fee_required",      r"\b(?:processing|registration|clearance|verification|activation|handling)\s*(?:fee|charge|amount)\b", 0.40),
    ("scan_qr",           r"\b(?:scan\s*(?:the\s*)?qr|qr\s*code)\b",                               0.35),
])

LOTTERY_RULES = _rules(ScamCategory.LOTTERY_PRIZE, [
    ("won_prize",         rf"\bwon{_GAP}\b(?:lottery|prize|car|iphone|money|cash|reward|gift|phone|laptop|jackpot)\b", 0.50),
    ("you_won",           r"\byou\s+(?:have\s+)?(?:won|win|been\s+selected)\b",                    0.45),
    ("congratulations",   rf"\bcongratulations{_GAP}\b(?:won|winner|selected)\b",                  0.45),
    ("lucky_draw",        r"\b(?:lucky\s*(?:winner|draw)|lottery|jackpot|bumper\s*draw)\b",        0.40),
    ("claim_prize",       rf"\bclaim{_GAP}\b(?:prize|reward|money|gift|winnings)\b",               0.45),
    ("selected_winner",   rf"\bselected{_GAP}\b(?:winner|lucky)\b",                                0.40),
])

PHISHING_RULES = _rules(ScamCategory.PHISHING_LINKS, [
    ("click_link",        rf"\b(?:click|tap|open){_GAP}\b(?:link|here|below)\b",                   0.45),
    ("verify_link",       rf"\bverify{_GAP}\b(?:link|here|url)\b",                                 0.40),
    ("shortener",         r"\b(?:bit\.ly|tinyurl|goo\.gl|rb\.gy|is\.gd|cutt\.ly|ow\.ly|tiny\.cc)\b", 0.40),
    ("suspicious_tld",    r"\b[a-z0-9\-]{1,63}\.(?:xyz|top|online|site|click|live|club|icu|buzz)\b", 0.40),
    ("lookalike_domain",  r"\b[a-z0-9\-]{0,30}(?:secure|verify|update|login|claim|kyc)[a-z0-9\-]{0,30}\.(?:in|com|org|net|co)\b", 0.40),
    ("app_download",      r"\b(?:download|install)\s+(?:this\s+|the\s+|our\s+)?(?:app|apk|software)\b", 0.40),
    ("remote_access",     r"\b(?:anydesk|teamviewer|quicksupport|screen\s*shar\w*|remote\s*access)\b", 0.50),
])

FAKE_OFFER_RULES = _rules(ScamCategory.FAKE_OFFERS, [
    ("limited_offer",     r"\blimited\s*(?:offer|slot|seats?)\b",                                  0.30),
    ("free_gift",         r"\bfree\s*(?:gift|car|iphone|laptop|phone|money|cash)\b",               0.40),
    ("earn_money",        rf"\bearn{_GAP}\b(?:money|cash|income|lakh|lakhs|thousand|daily)\b",     0.35),
    ("work_from_home",    r"\bwork\s*(?:from\s*)?(?:home|online)\b",                                0.35),
    ("instant_loan",      r"\binstant\s*(?:loan|money|cash|credit)\b",                             0.40),
    ("guaranteed_return", r"\bguaranteed\s*(?:returns?|profit|income)\b",                          0.50),
    ("multiply_money",    r"\b(?:double|triple)\s*(?:your\s*)?(?:money|income|investment)\b",      0.50),
    ("part_time",         r"\bpart[\s\-]?time\s*(?:job|work|income)\b",                            0.30),
    ("investment_scheme", r"\binvestment\s*(?:opportunity|scheme|plan)\b",                         0.35),
])

URGENCY_RULES = _rules(ScamCategory.URGENCY, [
    ("urgent",            r"\burgent(?:ly)?\b",                                                    0.30),
    ("immediately",       r"\bimmediate(?:ly)?\b",                                                 0.30),
    ("expires_soon",      r"\bexpir(?:e|es|ing)\s*(?:today|soon|now|tonight)\b",                  0.35),
    ("last_chance",       r"\blast\s*(?:chance|day|hour|warning|reminder)\b",                      0.35),
    ("act_now",           r"\b(?:act|do\s*it|respond|reply)\s*(?:now|fast|quick(?:ly)?)\b",        0.30),
    ("limited_time",      r"\blimited\s*(?:time|period)\b",                                        0.30),
    ("hurry",             r"\b(?:hurry|asap|quickly)\b",                                           0.25),
    ("right_now",         r"\bright\s*now\b",                                                      0.25),
    ("within_deadline",   r"\bwithin\s*\d+\s*(?:hours?|hrs?|minutes?|mins?)\b",                    0.35),
])

CONTACT_RULES = _rules(ScamCategory.CONTACT_REQUESTS, [
    ("send_details",      rf"\bsend{_GAP}\b(?:details|info|number|otp|pin)\b",                     0.30),
    ("share_details",     rf"\bshare{_GAP}\b(?:number|details|otp|pin)\b",                         0.30),
    ("provide_details",   rf"\bprovide{_GAP}\b(?:number|details|info)\b",                          0.30),
    ("call_me",           r"\bcall\s*(?:back|me|now|us|this\s*number)\b",                          0.25),
    ("whatsapp",          r"\bwhats\s*app\b",                                                      0.25),
    ("reply_with",        r"\b(?:message\s*back|reply\s*with)\b",                                  0.25),
])

# Literal phrases that add weight on top of their regex category
SCAM_PHRASES: Tuple[Tuple[str, ScamCategory], ...] = (
    ("verify your account", ScamCategory.BANKING),
    ("update kyc", ScamCategory.BANKING),
    ("kyc verification", ScamCategory.BANKING),
    ("account will be blocked", ScamCategory.BANKING),
    ("account blocked", ScamCategory.BANKING),
    ("account suspended", ScamCategory.BANKING),
    ("card details", ScamCategory.BANKING),
    ("bank details", ScamCategory.BANKING),
    ("send otp", ScamCategory.CREDENTIAL_REQUEST),
    ("share otp", ScamCategory.CREDENTIAL_REQUEST),
    ("confirm otp", ScamCategory.CREDENTIAL_REQUEST),
    ("enter otp", ScamCategory.CREDENTIAL_REQUEST),
    ("atm pin", ScamCategory.CREDENTIAL_REQUEST),
    ("upi pin", ScamCategory.CREDENTIAL_REQUEST),
    ("upi suspended", ScamCategory.UPI_PAYMENT),
    ("send money", ScamCategory.UPI_PAYMENT),
    ("you have won", ScamCategory.LOTTERY_PRIZE),
    ("lucky winner", ScamCategory.LOTTERY_PRIZE),
    ("claim prize", ScamCategory.LOTTERY_PRIZE),
    ("claim reward", ScamCategory.LOTTERY_PRIZE),
    ("free gift", ScamCategory.FAKE_OFFERS),
    ("work from home", ScamCategory.FAKE_OFFERS),
    ("guaranteed returns", ScamCategory.FAKE_OFFERS),
    ("double your money", ScamCategory.FAKE_OFFERS),
    ("urgent action", ScamCategory.URGENCY),
    ("expires today", ScamCategory.URGENCY),
    ("last chance", ScamCategory.URGENCY),
    ("act now", ScamCategory.URGENCY),
)

SCAM_PHRASE_WEIGHT = 0.30


# ═══════════════════════════════════════════════════════════════════════
# STRUCTURAL CUES — behavior / context / urgency layers
# ═══════════════════════════════════════════════════════════════════════

# Imperative verb asking for credentials or money
IMPERATIVE_REQUEST = re.compile(
    r"(?:^|[.!?,:;]\s*|\b(?:please|pls|kindly|now|just|immediately)\s+)"
    r"(?:send|share|give|provide|tell|enter|confirm|verify|pay|transfer|click|download|install|forward|read)\b"
    rf"{_GAP}\b(?:otp|pin|cvv|password|code|money|amount|payment|details|number|account|card|link|app|fee|rs|₹|upi)",
    re.IGNORECASE,
)

DEADLINE_CONSTRUCT = re.compile(
    r"\b(?:within\s*\d+\s*(?:seconds?|secs?|minutes?|mins?|hours?|hrs?|days?)"
    r"|by\s*\d{1,2}(?::\d{2})?\s*(?:am|pm)"
    r"|by\s*(?:today|tonight|tomorrow|end\s*of\s*(?:the\s*)?day|eod)"
    r"|before\s*(?:today|tonight|tomorrow|midnight|\d{1,2}(?::\d{2})?\s*(?:am|pm)?)"
    r"|in\s*(?:the\s*)?next\s*\d+\s*(?:seconds?|minutes?|mins?|hours?|hrs?)"
    r"|today\s*only|deadline)\b",
    re.IGNORECASE,
)

SECOND_PERSON = re.compile(r"\b(?:you|your|yours|yourself|u|ur)\b", re.IGNORECASE)

REQUEST_VERBS = re.compile(r"\b(?:send|share|give|provide|verify|confirm|tell)\b", re.IGNORECASE)

PRESSURE_WORDS = re.compile(
    r"\b(?:must|need\s*to|have\s*to|only\s*way|right\s*now|mandatory|compulsory|otherwise)\b",
    re.IGNORECASE,
)

SENSITIVE_REQUEST = re.compile(
    r"\b(?:otp|pin|password|cvv|mpin|card\s*(?:details|number)|account\s*(?:details|number)|bank\s*details)\b",
    re.IGNORECASE,
)

PRIZE_MENTION = re.compile(
    r"\b(?:won|winner|prize|lottery|reward|jackpot|lucky\s*draw|congratulations)\b",
    re.IGNORECASE,
)

PAYMENT_MENTION = re.compile(
    r"\b(?:pay|payment|fee|charge|deposit|transfer|tax|gst)\b",
    re.IGNORECASE,
)

AUTHORITY_CLAIM = re.compile(
    r"\b(?:rbi|reserve\s*bank|government|govt|police|cbi|cyber\s*cell|income\s*tax|customs"
    r"|court|officer|inspector|bank\s*(?:manager|official|officer)|sbi|hdfc|icici|axis\s*bank)\b",
    re.IGNORECASE,
)

# Distinct time-pressure cues; each present cue adds one urgency step
URGENCY_CUES: Tuple[Pattern, ...] = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"\burgent(?:ly)?\b",
    r"\bimmediate(?:ly)?\b",
    r"\b(?:right\s*)?now\b",
    r"\b(?:hurry|asap|quickly|fast)\b",
    r"\blast\s*(?:chance|day|hour|warning)\b",
    r"\b(?:today|tonight)\b",
    r"\bexpir(?:e|es|ed|ing|y)\b",
    r"\blimited\s*(?:time|period)\b",
    r"\bcannot\s*wait|can'?t\s*wait|don'?t\s*(?:wait|delay)\b",
    r"\b(?:within|in\s*(?:the\s*)?next)\s*\d+\s*(?:seconds?|secs?|minutes?|mins?|hours?|hrs?|days?)\b",
    r"\bby\s*\d{1,2}(?::\d{2})?\s*(?:am|pm)\b",
    r"\bdeadline\b",
))

# ═══════════════════════════════════════════════════════════════════════
# GREETINGS — messages made only of pleasantries score zero on every layer
# ═══════════════════════════════════════════════════════════════════════

GREETING_ONLY: Tuple[Pattern, ...] = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"^\s*(?:(?:hello|hi|hey|namaste|namaskar|greetings|good\s*(?:morning|afternoon|evening|day|night)"
    r"|dear\s*(?:sir|madam|ma'?am|customer|friend))[\s!.,?]*)+$",
    r"^\s*(?:how\s*are\s*you|hope\s*you.?re\s*(?:well|doing\s*well)|are\s*you\s*there)[\s!.,?]*$",
    r"^\s*(?:(?:thank\s*you|thanks|thank\s*u|ok(?:ay)?|welcome|bye|goodbye)(?:\s*(?:so\s*much|very\s*much|sir|madam))*[\s!.,?]*)+$",
))


@dataclass(frozen=True)
class ScamRules:
    """Bundle of rule tables injected into the signal scorers."""
    category_rules: Tuple[Rule, ...]
    phrases: Tuple[Tuple[str, ScamCategory], ...] = SCAM_PHRASES
    phrase_weight: float = SCAM_PHRASE_WEIGHT
    greetings: Tuple[Pattern, ...] = GREETING_ONLY
    urgency_cues: Tuple[Pattern, ...] = URGENCY_CUES

    def is_pure_greeting(self, text: str) -> bool:
        stripped = text.strip()
        return bool(stripped) and any(pattern.match(stripped) for pattern in self.greetings)


DEFAULT_RULES = ScamRules(
    category_rules=(
        BANKING_RULES
        + CREDENTIAL_RULES
        + UPI_RULES
        + LOTTERY_RULES
        + PHISHING_RULES
        + FAKE_OFFER_RULES
        + URGENCY_RULES
        + CONTACT_RULES
    ),
)
