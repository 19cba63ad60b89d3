"""
Phase-specific topic detection rules.

Each phase has an ordered rule table that defines:
- Keywords or patterns that show a topic was addressed
- Length thresholds for open-ended topics (main issue, basic context)
- Structural heuristics such as a capitalized word pair for a person's name

Rules are heuristic only: implicit answers can be under-matched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from ..schemas.phases import Phase, TOPIC_SCHEMA

logger = logging.getLogger(__name__)


class RuleType(str, Enum):
    """How a topic rule decides whether it matched."""
    KEYWORD = "keyword"         # Case-insensitive regex on the answer
    PATTERN = "pattern"         # Case-sensitive regex on the original text
    MIN_LENGTH = "min_length"   # Stripped answer longer than N chars


@dataclass(frozen=True)
class TopicRule:
    """A single rule mapping an answer predicate to a topic key."""
    id: str
    topic_key: str
    rule_type: RuleType
    value: Union[str, int]
    description: str = ""

    def matches(self, text: str) -> bool:
        if self.rule_type == RuleType.MIN_LENGTH:
            return len(text.strip()) > int(self.value)
        if self.rule_type == RuleType.KEYWORD:
            return re.search(str(self.value), text, re.IGNORECASE) is not None
        return re.search(str(self.value), text) is not None


@dataclass
class PhaseTopicRules:
    """Collection of topic rules for a specific phase."""
    phase: Phase
    rules: list[TopicRule] = field(default_factory=list)

    def rules_for(self, topic_key: str) -> list[TopicRule]:
        return [r for r in self.rules if r.topic_key == topic_key]


def word_pattern(*words: str) -> str:
    """Word-bounded alternation of literal words."""
    return r"\b(?:" + "|".join(re.escape(w) for w in words) + r")\b"


MONTHS = (
    "january", "february", "march", "april", "may", "june", "july",
    "august", "september", "october", "november", "december",
)

# Shared token patterns
DATE_PATTERN = (
    word_pattern(*MONTHS, "last year", "this year", "ago")
    + r"|\b\d{4}\b|\b\d{1,2}/\d{1,2}(?:/\d{2,4})?\b"
)
NAME_PAIR_PATTERN = r"\b[A-Z][a-z]+ [A-Z][a-z]+\b"
CURRENCY_PATTERN = r"[$€£]|" + word_pattern("kr", "money", "cost", "costs", "paid", "lost", "expense", "expenses")


# =============================================================================
# OPENING RULES
# =============================================================================
OPENING_RULES = PhaseTopicRules(
    phase=Phase.OPENING,
    rules=[
        TopicRule(
            id="op_main_issue",
            topic_key="mainIssue",
            rule_type=RuleType.MIN_LENGTH,
            value=100,
            description="A substantial free-form account describes the main issue",
        ),
        TopicRule(
            id="op_parties",
            topic_key="involvedParties",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("he", "she", "they", "company", "person", "employer", "landlord",
                               "boss", "manager", "neighbor", "neighbour"),
        ),
        TopicRule(
            id="op_context",
            topic_key="basicContext",
            rule_type=RuleType.MIN_LENGTH,
            value=50,
        ),
    ],
)


# =============================================================================
# TIMELINE RULES
# =============================================================================
TIMELINE_RULES = PhaseTopicRules(
    phase=Phase.TIMELINE,
    rules=[
        TopicRule(
            id="tl_start_date",
            topic_key="startDate",
            rule_type=RuleType.KEYWORD,
            value=DATE_PATTERN,
            description="Month name, year, numeric date or relative timeframe",
        ),
        TopicRule(
            id="tl_sequence",
            topic_key="eventSequence",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("then", "after", "before", "next", "later", "first", "second"),
        ),
        TopicRule(
            id="tl_key_events",
            topic_key="keyEvents",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("date", "when", "time"),
        ),
        TopicRule(
            id="tl_deadlines",
            topic_key="deadlines",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("deadline", "due", "expire", "expires", "expired", "must", "by"),
        ),
    ],
)


# =============================================================================
# DETAILS RULES
# =============================================================================
DETAILS_RULES = PhaseTopicRules(
    phase=Phase.DETAILS,
    rules=[
        TopicRule(
            id="dt_names",
            topic_key="specificNames",
            rule_type=RuleType.PATTERN,
            value=NAME_PAIR_PATTERN,
            description="Capitalized word pair, e.g. 'Anna Berg'",
        ),
        TopicRule(
            id="dt_locations",
            topic_key="locations",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("at", "in", "on", "street", "building", "office", "home", "address"),
        ),
        TopicRule(
            id="dt_how",
            topic_key="howItHappened",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("how", "method", "way", "process", "did", "made", "caused"),
        ),
        TopicRule(
            id="dt_motivations",
            topic_key="motivations",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("because", "reason", "why", "wanted", "intended"),
        ),
    ],
)


# =============================================================================
# LEGAL RULES
# =============================================================================
LEGAL_RULES = PhaseTopicRules(
    phase=Phase.LEGAL,
    rules=[
        TopicRule(
            id="lg_contracts",
            topic_key="contracts",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("contract", "agreement", "signed", "terms", "clause"),
        ),
        TopicRule(
            id="lg_relationships",
            topic_key="legalRelationships",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("employee", "employer", "tenant", "landlord", "client", "customer"),
        ),
        TopicRule(
            id="lg_obligations",
            topic_key="obligations",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("must", "should", "required", "obligated", "duty", "responsibility"),
        ),
        TopicRule(
            id="lg_violations",
            topic_key="violations",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("breach", "breached", "violated", "broke", "failed", "didn't"),
        ),
    ],
)


# =============================================================================
# EVIDENCE RULES
# =============================================================================
EVIDENCE_RULES = PhaseTopicRules(
    phase=Phase.EVIDENCE,
    rules=[
        TopicRule(
            id="ev_documents",
            topic_key="documents",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("document", "documents", "paper", "papers", "file", "pdf", "letter", "form"),
        ),
        TopicRule(
            id="ev_witnesses",
            topic_key="witnesses",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("witness", "witnesses", "saw", "present", "there", "observed"),
        ),
        TopicRule(
            id="ev_communications",
            topic_key="communications",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("email", "emails", "text", "texts", "message", "messages", "call", "wrote", "sent"),
        ),
        TopicRule(
            id="ev_physical",
            topic_key="physicalEvidence",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("photo", "photos", "video", "videos", "recording", "picture", "pictures", "evidence"),
        ),
    ],
)


# =============================================================================
# IMPACT RULES
# =============================================================================
IMPACT_RULES = PhaseTopicRules(
    phase=Phase.IMPACT,
    rules=[
        TopicRule(
            id="im_financial",
            topic_key="financialLoss",
            rule_type=RuleType.KEYWORD,
            value=CURRENCY_PATTERN,
        ),
        TopicRule(
            id="im_emotional",
            topic_key="emotionalImpact",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("stress", "stressed", "anxiety", "upset", "hurt", "emotional", "feel", "felt"),
        ),
        TopicRule(
            id="im_ongoing",
            topic_key="ongoingConsequences",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("still", "continue", "continues", "ongoing", "now", "current"),
        ),
        TopicRule(
            id="im_future",
            topic_key="futureImplications",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("will", "future", "next", "plan", "worry", "worried", "concern"),
        ),
    ],
)


# =============================================================================
# CLOSING RULES
# =============================================================================
CLOSING_RULES = PhaseTopicRules(
    phase=Phase.CLOSING,
    rules=[
        TopicRule(
            id="cl_gaps_filled",
            topic_key="gapsFilled",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("nothing else", "that's all", "that is all", "no more", "covered everything"),
        ),
        TopicRule(
            id="cl_facts_confirmed",
            topic_key="factsConfirmed",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("correct", "right", "yes", "confirm", "confirmed", "accurate"),
        ),
        TopicRule(
            id="cl_ready",
            topic_key="readyForReport",
            rule_type=RuleType.KEYWORD,
            value=word_pattern("ready", "go ahead", "proceed", "report"),
        ),
    ],
)


ALL_TOPIC_RULES: dict[Phase, PhaseTopicRules] = {
    Phase.OPENING: OPENING_RULES,
    Phase.TIMELINE: TIMELINE_RULES,
    Phase.DETAILS: DETAILS_RULES,
    Phase.LEGAL: LEGAL_RULES,
    Phase.EVIDENCE: EVIDENCE_RULES,
    Phase.IMPACT: IMPACT_RULES,
    Phase.CLOSING: CLOSING_RULES,
}


def load_topic_rules(phase: Union[Phase, str]) -> PhaseTopicRules:
    """Load the rule table for a phase. Unknown phases raise ValueError."""
    return ALL_TOPIC_RULES[Phase.parse(phase)]


def matching_rules(answer_text: str, phase: Union[Phase, str]) -> list[TopicRule]:
    """Rules of the phase that fire on the answer, in table order."""
    table = load_topic_rules(phase)
    known_keys = {t.key for t in TOPIC_SCHEMA[table.phase]}
    return [
        rule for rule in table.rules
        if rule.topic_key in known_keys and rule.matches(answer_text or "")
    ]


def classify(answer_text: str, phase: Union[Phase, str]) -> set[str]:
    """
    Map an answer to the topic keys of the phase it appears to address.

    Args:
        answer_text: The user's answer
        phase: The active interview phase

    Returns:
        Set of topic keys (possibly empty)
    """
    matched = {rule.topic_key for rule in matching_rules(answer_text, phase)}
    if matched:
        logger.debug("Topics matched in %s: %s", Phase.parse(phase).value, sorted(matched))
    return matched
