"""analysis.py — Risk Reasoning, Safety Advice & Target Asset
=============================================================

Reporting helpers attached to every TurnResult:

    build_reasoning()       → human-readable reasons behind the verdict
    build_safety_advice()   → refusal / safety content (the only material the
                              responder may use in freeze mode)
    identify_target_asset() → what the scammer is after (OTP, UPI, ...)

All three are pure functions of their inputs.
"""

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from honeypot.models import ScamCategory, TargetAsset


SIGNAL_EXPLANATIONS = {
    # Pattern rules
    "otp_request": "OTP/PIN requested over chat (never requested by legitimate banks)",
    "otp_mention": "OTP or verification code referenced",
    "secret_code": "Card PIN / CVV / UPI PIN solicited",
    "what_is_otp": "Sender asks the recipient to read out a code",
    "verify_account": "Account verification pretext",
    "kyc_update": "KYC update pretext",
    "account_threat": "Threat to block or suspend the account",
    "threat_account": "Threat to block or suspend the account",
    "card_details": "Card details requested",
    "bank_details": "Bank account details requested",
    "unauthorized": "Fake security alert about account activity",
    "upi_handle": "UPI handle supplied for payment",
    "send_money": "Payment or transfer requested",
    "fee_required": "Upfront fee demanded",
    "scan_qr": "QR code payment requested",
    "collect_request": "UPI collect / payment request",
    "won_prize": "Prize or lottery win claimed",
    "you_won": "Unexpected win announced",
    "claim_prize": "Prize claim requested",
    "lucky_draw": "Lucky draw / lottery narrative",
    "click_link": "Recipient asked to click a link",
    "shortener": "Shortened URL hides the destination",
    "suspicious_tld": "Link uses a high-risk domain",
    "lookalike_domain": "Lookalike domain imitating a trusted site",
    "app_download": "Suspicious app download request",
    "remote_access": "Requesting remote access to device",
    "guaranteed_return": "Guaranteed returns promised",
    "multiply_money": "Promise to multiply money",
    "work_from_home": "Work-from-home offer",
    "instant_loan": "Instant loan offer",
    # Behavior / context layers
    "imperative_request": "Direct command to hand over credentials or money",
    "deadline_construct": "Hard deadline imposed",
    "pressure_tactics": "High-pressure language detected",
    "repetitive_requests": "Repeated similar requests (persistence)",
    "aggressive_persistence": "Aggressive follow-up pattern",
    "narrative_continuation": "Scam narrative continued from earlier messages",
    "narrative_escalation": "New scam angle added to an ongoing narrative",
    "early_sensitive_request": "Sensitive data requested very early in the conversation",
    "unsolicited_prize": "Unsolicited prize offered up front",
    "prize_payment_paradox": "Prize requires a payment to release (classic advance-fee fraud)",
    "authority_claim": "Impersonation of bank or government authority",
    # Intel layer
    "upi_id": "Payment handle shared by sender",
    "phone_number": "Callback number shared by sender",
    "url": "Link shared by sender",
}

CATEGORY_EXPLANATIONS = {
    ScamCategory.BANKING: "Banking / KYC fraud indicators",
    ScamCategory.CREDENTIAL_REQUEST: "Credential harvesting (OTP / PIN / CVV)",
    ScamCategory.UPI_PAYMENT: "UPI / payment fraud indicators",
    ScamCategory.LOTTERY_PRIZE: "Prize / lottery fraud indicators",
    ScamCategory.PHISHING_LINKS: "Phishing link indicators",
    ScamCategory.FAKE_OFFERS: "Fake offer / investment indicators",
    ScamCategory.URGENCY: "Artificial urgency created",
    ScamCategory.CONTACT_REQUESTS: "Unsolicited contact or detail requests",
    ScamCategory.AUTHORITY: "Authority impersonation",
}


def build_reasoning(
    signals: Iterable[str],
    categories: Sequence[ScamCategory],
    phrases: Iterable[str] = (),
) -> List[str]:
    """Explain the verdict.

    Lines come in order: recognised signals, known scam phrases, then
    detected categories. Unknown signals are skipped and repeats dropped.
    """
    lines: List[Optional[str]] = []
    for signal in signals:
        if signal.startswith("urgency_cues:"):
            lines.append(f"Time-pressure cues: {signal.split(':', 1)[1]}")
        else:
            lines.append(SIGNAL_EXPLANATIONS.get(signal))
    lines.extend(f"Known scam phrase: '{phrase}'" for phrase in phrases)
    lines.extend(CATEGORY_EXPLANATIONS.get(category) for category in categories)

    reasons: List[str] = []
    for text in lines:
        if text and text not in reasons:
            reasons.append(text)
    return reasons


# (trigger, advice lines), evaluated in order; duplicates dropped
_ADVICE_RULES: Tuple[Tuple[re.Pattern, Tuple[str, ...]], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), advice) for pattern, advice in (
        (r"\b(?:otp|code|password|pin|cvv)\b", ("Banks never ask for OTP/PIN via chat",)),
        (r"\b(?:link|url|click|download|app|install|apk)\b", ("Do not click suspicious links or download apps",)),
        (r"\b(?:payment|pay|transfer|amount|money|fee|upi)\b", (
            "Do not make any payments or transfers",
            "Verify with your bank using the official app or number",
        )),
        (r"\b(?:bank|rbi|police|authority|officer|government|govt)\b", (
            "Contact your bank via the official app or phone number",
            "Verify through official channels before responding",
        )),
        (r"\b(?:urgent|immediate(?:ly)?|quickly|now|hurry)\b", ("Take time to verify before acting on urgent requests",)),
    )
)

_BASE_ADVICE = (
    "Do not share OTP, PIN, or passwords",
    "Do not click links or download files",
)


def build_safety_advice(text: str, is_scam: bool) -> List[str]:
    """Refusal and safety guidance for a scam message; empty when not a scam."""
    if not is_scam:
        return []
    advice = list(_BASE_ADVICE)
    message = text if isinstance(text, str) else ""
    for trigger, lines in _ADVICE_RULES:
        if trigger.search(message):
            advice.extend(line for line in lines if line not in advice)
    advice.append("Block and report the sender")
    return advice


# First match wins; ordered from most to least sensitive asset
_ASSET_RULES: Tuple[Tuple[re.Pattern, TargetAsset], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), asset) for pattern, asset in (
        (r"\b(?:otp|one\s*time\s*password|pin|cvv|passcode|secret\s*code)\b", TargetAsset.OTP),
        (r"\b(?:upi|vpa|gpay|phonepe|paytm|bhim)\b", TargetAsset.UPI_PAYMENT),
        (r"\b(?:password|login|credentials|user\s*id)\b", TargetAsset.PASSWORD),
        (r"\b(?:credit\s*card|debit\s*card|card\s*number|expiry|valid\s*thru)\b", TargetAsset.CREDIT_CARD),
        (r"\b(?:bank\s*account|account\s*number|ifsc|beneficiary)\b", TargetAsset.BANK_ACCOUNT),
        (r"\b(?:qr\s*code|scan\s*(?:the\s*)?code)\b", TargetAsset.QR_CODE),
        (r"\b(?:money|amount|cash|transfer|payment|fund|fee)\b", TargetAsset.MONEY),
        (r"\b(?:app|apk|software|install|download|teamviewer|anydesk)\b", TargetAsset.DEVICE_ACCESS),
        (r"\b(?:aadhaar|aadhar|pan|id\s*proof|kyc|document)\b", TargetAsset.PERSONAL_INFO),
    )
)


def identify_target_asset(text: str) -> Optional[TargetAsset]:
    if not isinstance(text, str):
        return None
    for pattern, asset in _ASSET_RULES:
        if pattern.search(text):
            return asset
    return None
