# generators/security_generator.py
from typing import List, Optional

from core.models import QualityMetrics, TestCase, TestStep
from emitters.script_utils import script_title
from emitters.security_emitter import emit_security_script
from logging_config import get_agent_logger, log_agent_complete, log_agent_start, log_agent_thinking
from parsers.security_instruction_parser import parse_security_instruction
from utility.test_case_formatter import TestIdSequence, format_test_case

logger = get_agent_logger("SECURITY")


def generate_security_tests(url: str, prompt: str, ids: Optional[TestIdSequence] = None) -> List[TestCase]:
    """Exactly one security case whose steps follow the parsed security steps."""
    ids = ids or TestIdSequence()
    log_agent_start("SECURITY", {"url": url, "prompt": prompt[:100]})
    parsed = parse_security_instruction(prompt, url)
    log_agent_thinking("SECURITY", f"intent={parsed.primary_intent} method={parsed.method} payload={parsed.payload!r}")

    title = f"Security Test: {script_title(prompt, 60) or parsed.primary_intent}"
    steps = [
        TestStep(step_number=s.step_number, action=f"{s.action} {s.target}".strip(),
                 expected_result=s.expected_result, data=s.value)
        for s in parsed.steps
    ]
    behavior = [f"Response status is one of {parsed.expected_statuses}"]
    if parsed.payload:
        behavior.append("Payload is not reflected or executed")

    case = format_test_case({
        "id": ids.next_id("Security"),
        "title": title,
        "description": f"Security test of {parsed.method} {url}: {prompt.strip()}",
        "category": "Security",
        "priority": "High",
        "severity": "High",
        "preconditions": [f"URL {url} is accessible", "Security testing environment is configured"],
        "steps": steps,
        "expected_result": f"Server responds with one of {parsed.expected_statuses}",
        "validation_criteria": {
            "compliance": [f"Security Intent: {parsed.primary_intent}"],
            "behavior": behavior,
        },
        "quality_metrics": QualityMetrics(
            confidence=round(parsed.confidence * 100), stability=95, maintainability=90,
        ),
        "automation_mapping": emit_security_script(title, parsed),
        "tags": ["security", parsed.primary_intent.lower()] + [i.lower() for i in parsed.intents if i != parsed.primary_intent],
    }, "Security")
    log_agent_complete("SECURITY", {"id": case.id, "intent": parsed.primary_intent})
    return [case]
