#!/usr/bin/env python3
"""
CLI for the case intake interview engine.

Usage:
    case-intake session [--config engine.json] [--verbose]
    case-intake assess --phase timeline --question "When did this happen?" "Last spring"

Environment Variables:
    CASE_INTAKE_CONFIG: JSON file with engine constant overrides

`session` runs a conversation in the terminal, printing the engine's view of
each answer. `assess` scores a single answer and prints the verdict as JSON,
which is handy when tuning the constants.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

from rich.logging import RichHandler

from .branching.analyzer import AnswerQualityAnalyzer
from .config import EngineConfig, load_config
from .engine import InterviewGuide, TurnResult
from .schemas.phases import ALL_PHASES, Phase, get_phase_info

# Default question per phase when the operator just presses enter
PHASE_OPENERS = {
    Phase.OPENING: "Can you tell me what happened?",
    Phase.TIMELINE: "When did this start, and what happened after that?",
    Phase.DETAILS: "Who was involved, and where did it take place?",
    Phase.LEGAL: "Was there any contract or agreement between you?",
    Phase.EVIDENCE: "Do you have any documents, messages or witnesses?",
    Phase.IMPACT: "How has this affected you financially and personally?",
    Phase.CLOSING: "Is there anything else, or is everything I have correct?",
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _print_turn(result: TurnResult) -> None:
    assessment = result.assessment
    print(f"  Quality: {assessment.quality.value} ({assessment.score}/100, confidence {assessment.confidence})")
    for issue in assessment.issues:
        print(f"    - [{issue.severity.value}] {issue.description}")

    print(f"  Completeness: {result.tracker.completeness}%")
    gaps = result.tracker.gaps
    if gaps.critical:
        print(f"  Critical gaps: {', '.join(gaps.critical)}")
    if gaps.important:
        print(f"  Important gaps: {', '.join(gaps.important)}")

    if result.phase_transitioned:
        print(f"  >> Moving to {get_phase_info(result.new_phase).name}: {result.transition_reason}")

    follow_up = result.next_follow_up
    if follow_up:
        print(f"  Follow-up ({follow_up.priority.value}): {follow_up.question}")


def run_session(config: EngineConfig) -> int:
    """Interactive interview loop."""
    guide = InterviewGuide(config=config)

    print(f"\n{'='*60}")
    print("Case Intake Interview")
    print(f"{'='*60}")
    print("Commands: 'done' to finish, 'status' to see progress\n")

    pending_question: Optional[str] = None
    while True:
        info = get_phase_info(guide.current_phase)
        progress = guide.progress.get_progress()
        question = pending_question or PHASE_OPENERS[guide.current_phase]
        pending_question = None

        print(f"\n{'─'*50}")
        print(f"[{info.name}] Phase {progress['phase_number']}/{progress['phase_total']}, "
              f"question {progress['questions_in_phase'] + 1}")
        print(f"{'─'*50}")
        print(f"\n{question}\n")

        try:
            answer = input("> ").strip()
        except KeyboardInterrupt:
            print("\n\nInterview interrupted.")
            break
        except EOFError:
            print("\n\nEnd of input.")
            break

        if answer.lower() == "done":
            print("Finishing interview...")
            break

        if answer.lower() == "status":
            summary = guide.get_summary()
            print("\n--- Status ---")
            print(f"Phase: {summary['phase']['phase']}")
            print(f"Completeness: {summary['completeness']}%")
            print(f"Gaps: {json.dumps(summary['gaps'], indent=2)}")
            pending_question = question
            continue

        result = guide.process_answer(answer, question)
        _print_turn(result)
        if result.next_follow_up:
            pending_question = result.next_follow_up.question

    summary = guide.get_summary()
    print(f"\n{'='*60}")
    print("Interview Summary")
    print(f"{'='*60}")
    print(f"Reached phase: {summary['phase']['phase']}")
    print(f"Completeness: {summary['completeness']}%")
    print(f"Average answer score: {summary['metrics']['average_score']}")
    print(f"Follow-ups asked: {summary['metrics']['follow_ups_asked']}")
    print(f"{'='*60}")
    return 0


def run_assess(config: EngineConfig, phase: str, question: str, answer: str) -> int:
    """Assess one answer and print the result as JSON."""
    analyzer = AnswerQualityAnalyzer(config)
    assessment = analyzer.assess(answer, phase, question)
    follow_ups = analyzer.generate_follow_up_questions(assessment, phase, answer)
    print(json.dumps({
        "assessment": assessment.to_dict(),
        "follow_ups": [f.to_dict() for f in follow_ups],
        "ask_now": analyzer.should_ask_follow_up_now(assessment, 0),
    }, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="case-intake",
        description="Case intake interview engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Interactive session
    case-intake session

    # Score a single answer
    case-intake assess --phase opening --question "What happened?" "ok"
        """,
    )
    parser.add_argument(
        "--config",
        default=None,
        help="JSON file with engine constant overrides (default: $CASE_INTAKE_CONFIG)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show engine debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("session", help="Run an interactive interview")

    assess = subparsers.add_parser("assess", help="Assess a single answer")
    assess.add_argument(
        "--phase", "-p",
        default=Phase.OPENING.value,
        choices=[info.phase.value for info in ALL_PHASES],
        help="Phase the answer was given in",
    )
    assess.add_argument(
        "--question", "-q",
        default="",
        help="The question that was asked",
    )
    assess.add_argument("answer", help="The answer text")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.command == "assess":
        return run_assess(config, args.phase, args.question, args.answer)
    return run_session(config)


if __name__ == "__main__":
    sys.exit(main())
