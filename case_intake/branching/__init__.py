"""
Answer classification and quality control for the interview flow.

This module provides:
- Phase-specific topic detection rules
- Answer quality assessment
- Follow-up question generation
"""

from .topics import (
    RuleType,
    TopicRule,
    PhaseTopicRules,
    ALL_TOPIC_RULES,
    classify,
    load_topic_rules,
    matching_rules,
)
from .analyzer import (
    AnswerQuality,
    AnswerQualityAnalyzer,
    AnswerQualityAssessment,
    FollowUpPriority,
    FollowUpQuestion,
    IssueSeverity,
    IssueType,
    QualityIssue,
    QualityMetrics,
    assess_answer_quality,
    generate_follow_up_questions,
    initialize_quality_metrics,
    should_ask_follow_up_now,
    update_quality_metrics,
)

__all__ = [
    "RuleType",
    "TopicRule",
    "PhaseTopicRules",
    "ALL_TOPIC_RULES",
    "classify",
    "load_topic_rules",
    "matching_rules",
    "AnswerQuality",
    "AnswerQualityAnalyzer",
    "AnswerQualityAssessment",
    "FollowUpPriority",
    "FollowUpQuestion",
    "IssueSeverity",
    "IssueType",
    "QualityIssue",
    "QualityMetrics",
    "assess_answer_quality",
    "generate_follow_up_questions",
    "initialize_quality_metrics",
    "should_ask_follow_up_now",
    "update_quality_metrics",
]
