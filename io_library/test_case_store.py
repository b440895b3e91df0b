# io_library/test_case_store.py
from typing import Dict, List, Optional

from core.models import TestCase
from logging_config import get_agent_logger

logger = get_agent_logger("STORE")


class InMemoryTestCaseStore:
    """
    Process-local stand-in for the persistence store, keyed by test case id.

    Cases are frozen models, so handing out the stored instance is safe.
    A later save with the same id replaces the earlier record.
    """

    __test__ = False

    def __init__(self):
        self._cases: Dict[str, TestCase] = {}

    def save(self, test_case: TestCase) -> None:
        if test_case.id in self._cases:
            logger.debug(f"💾 replacing {test_case.id}")
        self._cases[test_case.id] = test_case

    def save_all(self, test_cases: List[TestCase]) -> int:
        for tc in test_cases:
            self.save(tc)
        logger.info(f"💾 stored {len(test_cases)} test case(s)")
        return len(test_cases)

    def get(self, test_case_id: str) -> Optional[TestCase]:
        return self._cases.get(test_case_id)

    def list(self, test_type: Optional[str] = None) -> List[TestCase]:
        cases = list(self._cases.values())
        if test_type:
            cases = [c for c in cases if c.test_type == test_type]
        return cases

    def clear(self) -> None:
        self._cases.clear()

    def __len__(self) -> int:
        return len(self._cases)

    def __contains__(self, test_case_id: object) -> bool:
        return test_case_id in self._cases
