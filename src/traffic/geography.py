"""
Geography Inference

Infers a site's primary market from on-page and domain evidence and turns it
into a five-country percentage split.

Signal sources (in order of weight):
1. Country-code TLD (.co.uk, .de) - decides the market outright
2. hreflang region codes (0.70)
3. Phone country codes (0.50)
4. Currency symbols/codes (0.40)
5. Spelling conventions (0.25)
6. Place names in the domain itself (medium confidence fallback)
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from src.utils.domains import normalize_domain

from .exceptions import GeographyError
from .models import Confidence, CountryShare

logger = logging.getLogger(__name__)


# =============================================================================
# MARKET CONFIGURATION
# =============================================================================

MARKET_CONFIG = {
    "gb": {
        "name": "United Kingdom",
        "tlds": [".co.uk", ".org.uk", ".ac.uk", ".gov.uk", ".nhs.uk", ".uk"],
        "phone_prefix": "+44",
        "currency_patterns": [r"£\s?\d", r"\bGBP\b"],
    },
    "us": {
        "name": "United States",
        "tlds": [".us"],
        "phone_prefix": "+1",
        "currency_patterns": [r"\bUSD\b", r"US\$"],
    },
    "ca": {
        "name": "Canada",
        "tlds": [".ca"],
        "phone_prefix": None,  # +1 is shared with the US
        "currency_patterns": [r"\bCAD\b", r"C\$"],
    },
    "au": {
        "name": "Australia",
        "tlds": [".com.au", ".net.au", ".org.au", ".edu.au", ".gov.au", ".au"],
        "phone_prefix": "+61",
        "currency_patterns": [r"\bAUD\b", r"A\$"],
    },
    "nz": {
        "name": "New Zealand",
        "tlds": [".co.nz", ".nz"],
        "phone_prefix": "+64",
        "currency_patterns": [r"\bNZD\b"],
    },
    "ie": {
        "name": "Ireland",
        "tlds": [".ie"],
        "phone_prefix": "+353",
        "currency_patterns": [],
    },
    "de": {
        "name": "Germany",
        "tlds": [".de"],
        "phone_prefix": "+49",
        "currency_patterns": [],
    },
    "fr": {
        "name": "France",
        "tlds": [".fr"],
        "phone_prefix": "+33",
        "currency_patterns": [],
    },
    "es": {"name": "Spain", "tlds": [".es"], "phone_prefix": "+34", "currency_patterns": []},
    "it": {"name": "Italy", "tlds": [".it"], "phone_prefix": "+39", "currency_patterns": []},
    "nl": {"name": "Netherlands", "tlds": [".nl"], "phone_prefix": "+31", "currency_patterns": []},
    "be": {"name": "Belgium", "tlds": [".be"], "phone_prefix": "+32", "currency_patterns": []},
    "ch": {
        "name": "Switzerland",
        "tlds": [".ch"],
        "phone_prefix": "+41",
        "currency_patterns": [r"\bCHF\b"],
    },
    "at": {"name": "Austria", "tlds": [".at"], "phone_prefix": "+43", "currency_patterns": []},
    "se": {
        "name": "Sweden",
        "tlds": [".se"],
        "phone_prefix": "+46",
        "currency_patterns": [r"\bSEK\b"],
    },
    "no": {
        "name": "Norway",
        "tlds": [".no"],
        "phone_prefix": "+47",
        "currency_patterns": [r"\bNOK\b"],
    },
    "dk": {
        "name": "Denmark",
        "tlds": [".dk"],
        "phone_prefix": "+45",
        "currency_patterns": [r"\bDKK\b"],
    },
    "fi": {"name": "Finland", "tlds": [".fi"], "phone_prefix": "+358", "currency_patterns": []},
    "in": {
        "name": "India",
        "tlds": [".co.in", ".in"],
        "phone_prefix": "+91",
        "currency_patterns": [r"₹\s?\d", r"\bINR\b"],
    },
    "sg": {"name": "Singapore", "tlds": [".com.sg", ".sg"], "phone_prefix": "+65", "currency_patterns": []},
    "za": {"name": "South Africa", "tlds": [".co.za", ".za"], "phone_prefix": "+27", "currency_patterns": []},
    "jp": {"name": "Japan", "tlds": [".co.jp", ".jp"], "phone_prefix": "+81", "currency_patterns": []},
    "br": {"name": "Brazil", "tlds": [".com.br", ".br"], "phone_prefix": "+55", "currency_patterns": []},
    "mx": {"name": "Mexico", "tlds": [".com.mx", ".mx"], "phone_prefix": "+52", "currency_patterns": []},
}

DEFAULT_MARKET = "us"

# Country name -> ISO code (for branded lookups)
COUNTRY_CODES: Dict[str, str] = {
    config["name"]: code for code, config in MARKET_CONFIG.items()
}

# TLD -> market, longest first so .co.uk wins over .uk
TLD_TO_MARKET: List[Tuple[str, str]] = sorted(
    ((tld, code) for code, config in MARKET_CONFIG.items() for tld in config["tlds"]),
    key=lambda item: len(item[0]),
    reverse=True,
)

PHONE_PREFIX_TO_MARKET = {
    config["phone_prefix"]: code
    for code, config in MARKET_CONFIG.items()
    if config["phone_prefix"]
}

HREFLANG_ALIASES = {"uk": "gb"}

# Place names in the domain label
DOMAIN_NAME_CUES = {
    "uk": "gb", "britain": "gb", "british": "gb", "england": "gb", "scotland": "gb",
    "wales": "gb", "london": "gb", "manchester": "gb", "birmingham": "gb",
    "usa": "us", "america": "us", "newyork": "us", "california": "us", "texas": "us",
    "florida": "us", "canada": "ca", "toronto": "ca", "vancouver": "ca",
    "australia": "au", "sydney": "au", "melbourne": "au",
    "germany": "de", "berlin": "de", "munich": "de", "france": "fr", "paris": "fr",
}

# Cues this short only match a whole hyphen/digit-delimited token ("uk-plumbers", not "duke")
SHORT_CUE_LENGTH = 3
LABEL_TOKEN_SEPARATORS = re.compile(r"[-\d]+")

BRITISH_SPELLINGS = ["colour", "favour", "honour", "centre", "licence", "organise", "realise"]
AMERICAN_SPELLINGS = ["color", "favor", "honor", "center", "license", "organize", "realize"]

# Signal weights
WEIGHT_HREFLANG = 0.70
WEIGHT_PHONE = 0.50
WEIGHT_CURRENCY = 0.40
WEIGHT_SPELLING = 0.25

# Summed content evidence needed for each confidence level
HIGH_EVIDENCE = 1.0
MEDIUM_EVIDENCE = 0.5

# Primary market -> most likely secondary markets (primary first)
LIKELY_MARKETS = {
    "United Kingdom": ["United Kingdom", "Ireland", "United States", "Canada", "Australia"],
    "United States": ["United States", "Canada", "United Kingdom", "Mexico", "Australia"],
    "Canada": ["Canada", "United States", "United Kingdom", "France", "Australia"],
    "Australia": ["Australia", "New Zealand", "United Kingdom", "United States", "Singapore"],
    "Germany": ["Germany", "Austria", "Switzerland", "Netherlands", "United Kingdom"],
}
DEFAULT_LIKELY_MARKETS = ["United States", "United Kingdom", "Canada", "Germany", "Australia"]

DISTRIBUTIONS = {
    Confidence.HIGH: [65.0, 15.0, 10.0, 6.0, 4.0],
    Confidence.MEDIUM: [50.0, 20.0, 15.0, 10.0, 5.0],
    Confidence.LOW: [35.0, 25.0, 20.0, 12.0, 8.0],
}

HREFLANG_RE = re.compile(r"""hreflang=["']([a-z]{2,3})[-_]([a-z]{2})["']""", re.IGNORECASE)
PHONE_RE = re.compile(r"\+(\d{1,3})[\s.-]?\(?\d")


# =============================================================================
# RESULT
# =============================================================================


@dataclass
class MarketInference:
    """Primary market with the evidence behind it."""
    market: str
    confidence: Confidence
    clues: List[str] = field(default_factory=list)

    @property
    def country(self) -> str:
        return MARKET_CONFIG[self.market]["name"]


def country_code(country: str, default: str = DEFAULT_MARKET) -> str:
    """ISO code for a country name ("United Kingdom" -> "gb")."""
    return COUNTRY_CODES.get(country, default)


def tld_market(domain: str) -> Optional[Tuple[str, str]]:
    """(market_code, tld) for a country-code TLD, or None."""
    domain = normalize_domain(domain)
    for tld, code in TLD_TO_MARKET:
        if domain.endswith(tld):
            return code, tld
    return None


def label_has_cue(label: str, cue: str) -> bool:
    """Place-name cue at a token boundary of the domain label."""
    tokens = [t for t in LABEL_TOKEN_SEPARATORS.split(label.lower()) if t]
    if len(cue) <= SHORT_CUE_LENGTH:
        return cue in tokens
    return any(t.startswith(cue) or t.endswith(cue) for t in tokens)


def extract_content_evidence(html: str) -> Dict[str, float]:
    """Summed signal weight per market from hreflang, phones, currency and spelling."""
    evidence: Dict[str, float] = {}

    def add(code: str, weight: float) -> None:
        evidence[code] = evidence.get(code, 0.0) + weight

    regions = {HREFLANG_ALIASES.get(r.lower(), r.lower()) for _, r in HREFLANG_RE.findall(html)}
    # Many hreflang regions mark a multi-market site, which says nothing about the primary one
    if len(regions) == 1:
        region = regions.pop()
        if region in MARKET_CONFIG:
            add(region, WEIGHT_HREFLANG)

    prefixes = {f"+{digits}" for digits in PHONE_RE.findall(html)}
    for prefix in sorted(prefixes):
        code = PHONE_PREFIX_TO_MARKET.get(prefix)
        if code:
            add(code, WEIGHT_PHONE)

    for code, config in MARKET_CONFIG.items():
        if any(re.search(p, html) for p in config["currency_patterns"]):
            add(code, WEIGHT_CURRENCY)

    lower_html = html.lower()
    british = sum(1 for w in BRITISH_SPELLINGS if re.search(rf"\b{w}\b", lower_html))
    american = sum(1 for w in AMERICAN_SPELLINGS if re.search(rf"\b{w}\b", lower_html))
    if british > american:
        add("gb", WEIGHT_SPELLING)
    elif american > british:
        add("us", WEIGHT_SPELLING)

    return evidence


# =============================================================================
# INFERRER
# =============================================================================


class GeographyInferrer:
    """
    Default geography collaborator.

    Usage:
        inferrer = GeographyInferrer()
        shares = inferrer.infer("example.co.uk", html)
        # [CountryShare("United Kingdom", 65.0), CountryShare("Ireland", 15.0), ...]
    """

    def detect_market(self, domain: str, html: str = "") -> MarketInference:
        domain = normalize_domain(domain)
        html = html or ""

        tld = tld_market(domain)
        if tld:
            code, suffix = tld
            return MarketInference(code, Confidence.HIGH, [f"Domain extension {suffix}"])

        evidence = extract_content_evidence(html)
        if evidence:
            ranked = sorted(evidence.items(), key=lambda item: (-item[1], item[0]))
            code, score = ranked[0]
            runner_up = ranked[1][1] if len(ranked) > 1 else 0.0

            if score >= HIGH_EVIDENCE and score > runner_up * 2:
                confidence = Confidence.HIGH
            elif score >= MEDIUM_EVIDENCE and score > runner_up:
                confidence = Confidence.MEDIUM
            else:
                confidence = Confidence.LOW
            return MarketInference(code, confidence, [f"On-page evidence {score:.2f}"])

        label = domain.split(".")[0]
        for cue, code in DOMAIN_NAME_CUES.items():
            if label_has_cue(label, cue):
                return MarketInference(code, Confidence.MEDIUM, [f"Domain name contains '{cue}'"])

        return MarketInference(DEFAULT_MARKET, Confidence.LOW, ["No geographic signals"])

    def infer(self, domain: str, html: str = "") -> List[CountryShare]:
        """
        Five-country traffic split for a site.

        Args:
            domain: Site domain
            html: Page HTML; empty means TLD/domain-only inference

        Returns:
            CountryShare list whose percentages sum to 100
        """
        inference = self.detect_market(domain, html)
        primary = inference.country
        markets = LIKELY_MARKETS.get(primary)
        if markets is None:
            markets = [primary] + [m for m in DEFAULT_LIKELY_MARKETS if m != primary][:4]

        shares = [
            CountryShare(country=country, percentage=pct)
            for country, pct in zip(markets, DISTRIBUTIONS[inference.confidence])
        ]
        logger.info(
            f"Geography for {domain}: {primary} ({inference.confidence.value}) - "
            f"{'; '.join(inference.clues)}"
        )
        return shares


def validate_shares(shares: List[CountryShare]) -> List[CountryShare]:
    """Raise GeographyError unless shares is a non-empty split summing to 100."""
    if not shares:
        raise GeographyError("Geography inference returned no countries")
    total = sum(s.percentage for s in shares)
    if abs(total - 100.0) > 0.01:
        raise GeographyError(f"Geography percentages sum to {total}, expected 100")
    return shares
