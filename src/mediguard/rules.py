"""Deterministic compliance rules.

The catalog is plain data: each rule is a regular expression plus the
classification it assigns. ``evaluate_rules`` is the only interpreter.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List

from mediguard.constants import (
    ACL_18,
    NATIONAL_LAW_133_1_A,
    NATIONAL_LAW_133_1_B,
    NATIONAL_LAW_133_1_C,
    NATIONAL_LAW_133_1_D,
    NATIONAL_LAW_133_1_E,
    TGA_CODE_12,
)
from mediguard.models import Severity, Violation, ViolationType

CATALOG_VERSION = "2024.2"


@dataclass(frozen=True)
class ComplianceRule:
    """One deterministic detection rule."""

    rule_id: str
    pattern: str
    type: ViolationType
    severity: Severity
    rule: str
    issue: str

    @property
    def regex(self) -> "re.Pattern":
        return _compile(self.pattern)


_COMPILED: dict = {}


def _compile(pattern: str) -> "re.Pattern":
    compiled = _COMPILED.get(pattern)
    if compiled is None:
        compiled = _COMPILED[pattern] = re.compile(pattern, re.IGNORECASE)
    return compiled


_INDUCEMENT = ViolationType.PROHIBITED_INDUCEMENT
_MISLEADING = ViolationType.MISLEADING_CLAIMS
_TESTIMONIAL = ViolationType.PROHIBITED_TESTIMONIALS
_EXPECTATIONS = ViolationType.UNREASONABLE_EXPECTATIONS
_THERAPEUTIC = ViolationType.THERAPEUTIC_GOODS
_CONSUMER = ViolationType.CONSUMER_LAW

RULE_CATALOG = (
    # Financial inducements
    ComplianceRule("percent_off", r"\d+%\s*off", _INDUCEMENT, Severity.CRITICAL,
                   NATIONAL_LAW_133_1_E, "Percentage discount prohibited in healthcare advertising"),
    ComplianceRule("percent_discount", r"\d+%\s*discount", _INDUCEMENT, Severity.CRITICAL,
                   NATIONAL_LAW_133_1_E, "Percentage discount prohibited in healthcare advertising"),
    ComplianceRule("dollar_off", r"\$\d[\d,]*\s*off", _INDUCEMENT, Severity.CRITICAL,
                   NATIONAL_LAW_133_1_E, "Financial discount prohibited in healthcare advertising"),
    ComplianceRule("dollar_discount", r"\$\d[\d,]*\s*discount", _INDUCEMENT, Severity.CRITICAL,
                   NATIONAL_LAW_133_1_E, "Financial discount prohibited in healthcare advertising"),
    ComplianceRule("save_dollars", r"save\s*\$\d[\d,]*", _INDUCEMENT, Severity.CRITICAL,
                   NATIONAL_LAW_133_1_E, "Financial savings claim prohibited in healthcare advertising"),
    ComplianceRule("special_offer", r"special\s*offer", _INDUCEMENT, Severity.HIGH,
                   NATIONAL_LAW_133_1_E, "Special offer constitutes prohibited inducement"),
    ComplianceRule("free_with_conditions",
                   r"free\s+(?:consultation|consult|whitening|check-?up|x-?rays?|assessment)s?\s+(?:with|when)\b",
                   _INDUCEMENT, Severity.HIGH,
                   NATIONAL_LAW_133_1_E, "Free services with conditions constitute prohibited inducement"),
    # Time pressure
    ComplianceRule("limited_time", r"limited\s*time", _INDUCEMENT, Severity.HIGH,
                   NATIONAL_LAW_133_1_E, "Time pressure tactics prohibited in healthcare advertising"),
    ComplianceRule("limited_spots", r"limited\s*spots", _INDUCEMENT, Severity.HIGH,
                   NATIONAL_LAW_133_1_E, "Limited availability creates urgency pressure"),
    ComplianceRule("this_week_only", r"this\s*week\s*only", _INDUCEMENT, Severity.HIGH,
                   NATIONAL_LAW_133_1_E, "Urgency pressure prohibited in healthcare advertising"),
    ComplianceRule("hurry", r"\bhurry\b|expires?\s+soon|while\s+stocks\s+last", _INDUCEMENT, Severity.HIGH,
                   NATIONAL_LAW_133_1_E, "Urgency pressure prohibited in healthcare advertising"),
    ComplianceRule("book_now", r"book\s*now", _INDUCEMENT, Severity.MEDIUM,
                   NATIONAL_LAW_133_1_E, "Urgency language may constitute prohibited inducement"),
    # Guarantees and outcome claims
    ComplianceRule("guarantee", r"guarantee\w*", _MISLEADING, Severity.CRITICAL,
                   NATIONAL_LAW_133_1_A, "Guaranteed outcomes prohibited in healthcare advertising"),
    ComplianceRule("amazing_results", r"amazing\s*results", _EXPECTATIONS, Severity.MEDIUM,
                   NATIONAL_LAW_133_1_D, "Amazing results claims create unreasonable expectations"),
    ComplianceRule("hundred_percent", r"100%\s*(?:success|effective|results)", _MISLEADING, Severity.CRITICAL,
                   NATIONAL_LAW_133_1_A, "100% success claims are misleading and prohibited"),
    ComplianceRule("will_transform", r"will\s*transform", _EXPECTATIONS, Severity.MEDIUM,
                   NATIONAL_LAW_133_1_D, "Transformation claims create unreasonable expectations"),
    ComplianceRule("permanent_results", r"permanent\s*results", _MISLEADING, Severity.HIGH,
                   NATIONAL_LAW_133_1_A, "Permanent results claims are misleading"),
    ComplianceRule("life_changing", r"life[\s-]*changing", _EXPECTATIONS, Severity.MEDIUM,
                   NATIONAL_LAW_133_1_D, "Life-changing claims create unreasonable expectations"),
    ComplianceRule("promise", r"\bpromise[sd]?\b", _MISLEADING, Severity.MEDIUM,
                   NATIONAL_LAW_133_1_A, "Promised outcomes are misleading"),
    # Testimonials
    ComplianceRule("patient_says", r"patient\s*says", _TESTIMONIAL, Severity.HIGH,
                   NATIONAL_LAW_133_1_C, "Patient testimonials are prohibited"),
    ComplianceRule("customer_review", r"customer\s*review", _TESTIMONIAL, Severity.HIGH,
                   NATIONAL_LAW_133_1_C, "Customer reviews constitute prohibited testimonials"),
    ComplianceRule("success_story", r"success\s*stor(?:y|ies)", _TESTIMONIAL, Severity.HIGH,
                   NATIONAL_LAW_133_1_C, "Success stories constitute prohibited testimonials"),
    ComplianceRule("testimonial", r"\btestimonials?\b", _TESTIMONIAL, Severity.HIGH,
                   NATIONAL_LAW_133_1_C, "Testimonials are prohibited in healthcare advertising"),
    ComplianceRule("before_and_after", r"before[\s-]*(?:and|&)[\s-]*after", _TESTIMONIAL, Severity.HIGH,
                   NATIONAL_LAW_133_1_C, "Before and after claims are prohibited without disclaimers"),
    # Superlatives
    ComplianceRule("award_winning", r"award[\s-]*winning", _MISLEADING, Severity.MEDIUM,
                   NATIONAL_LAW_133_1_B, "Award claims require substantiation"),
    ComplianceRule("best_practitioner", r"best\s*(?:dentist|clinic|doctor|treatment)", _MISLEADING, Severity.MEDIUM,
                   NATIONAL_LAW_133_1_B, "Unsubstantiated superlative claims are misleading"),
    ComplianceRule("leading_practice", r"leading\s*(?:clinic|practice|specialist)", _MISLEADING, Severity.MEDIUM,
                   NATIONAL_LAW_133_1_B, "Unsubstantiated leading claims are misleading"),
    # Therapeutic and consumer-law claims
    ComplianceRule("cure_claim", r"\bcure[sd]?\b", _THERAPEUTIC, Severity.HIGH,
                   TGA_CODE_12, "Cure claims are unsubstantiated therapeutic claims"),
    ComplianceRule("clinically_proven", r"clinically\s+proven", _THERAPEUTIC, Severity.HIGH,
                   TGA_CODE_12, "Clinically proven claims require substantiation"),
    ComplianceRule("no_side_effects", r"no\s+side[\s-]*effects", _THERAPEUTIC, Severity.HIGH,
                   TGA_CODE_12, "Claims of no side effects are misleading therapeutic claims"),
    ComplianceRule("lowest_price", r"lowest\s+prices?|cheapest", _CONSUMER, Severity.MEDIUM,
                   ACL_18, "Unsubstantiated pricing claims may mislead consumers"),
)

_SUGGESTIONS = {
    ViolationType.PROHIBITED_INDUCEMENT: (
        "Remove discount offers, time pressure, and special deals. "
        "Focus on service quality and professional expertise."
    ),
    ViolationType.MISLEADING_CLAIMS: (
        "Replace guaranteed outcomes with qualified statements. "
        "Use evidence-based language with appropriate disclaimers."
    ),
    ViolationType.PROHIBITED_TESTIMONIALS: (
        "Remove patient testimonials, reviews, and success stories. "
        "Focus on professional qualifications and service descriptions."
    ),
    ViolationType.UNREASONABLE_EXPECTATIONS: (
        "Qualify transformation claims with realistic expectations "
        "and individual variation disclaimers."
    ),
}

_DEFAULT_SUGGESTION = (
    "Ensure all claims are substantiated, qualified, and compliant "
    "with healthcare advertising regulations."
)


def suggestion_for(violation_type: ViolationType) -> str:
    """Fixed remediation advice for a violation type."""
    return _SUGGESTIONS.get(violation_type, _DEFAULT_SUGGESTION)


def compliant_rewrite_for(text: str, violation_type: ViolationType) -> str:
    """Fixed compliant replacement for a flagged phrase.

    Args:
        text: The flagged text
        violation_type: Its classification

    Returns:
        Replacement phrase
    """
    lower = text.lower()

    if violation_type == ViolationType.PROHIBITED_INDUCEMENT:
        # "special offer" contains "off", so it is checked first
        if "special offer" in lower:
            return "Professional services available"
        if any(token in lower for token in ("$", "%", "off", "discount")):
            return "Professional treatment available"
        if any(token in lower for token in ("limited time", "week only", "book now")):
            return "Consultations available"

    if violation_type == ViolationType.MISLEADING_CLAIMS:
        if "guarantee" in lower or "100%" in lower:
            return "Professional treatment with individual results varying"
        if "best" in lower or "leading" in lower:
            return "Experienced professional practice"

    if violation_type == ViolationType.PROHIBITED_TESTIMONIALS:
        return "Professional treatment available with qualified practitioners"

    if violation_type == ViolationType.UNREASONABLE_EXPECTATIONS and "transform" in lower:
        return "Professional treatment may improve your condition"

    return "Professional healthcare services available"


def evaluate_rules(text: str, catalog: Iterable[ComplianceRule] = RULE_CATALOG) -> List[Violation]:
    """Run every rule over a text blob.

    Args:
        text: Text to scan
        catalog: Rules to apply, in order

    Returns:
        One Violation per match, in catalog order then match position.
        Each original_text is the exact matched substring of ``text``.
    """
    if not text:
        return []

    violations = []
    for rule in catalog:
        for match in rule.regex.finditer(text):
            matched = match.group(0)
            if not matched.strip():
                continue
            violations.append(Violation(
                type=rule.type,
                rule=rule.rule,
                severity=rule.severity,
                original_text=matched,
                issue=rule.issue,
                suggestion=suggestion_for(rule.type),
                compliant_rewrite=compliant_rewrite_for(matched, rule.type),
                source="deterministic",
            ))
    return violations
