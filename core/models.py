"""
Data model for the instruction-to-test pipeline.

Everything here is request scoped: built inside one generate_tests call and
discarded afterwards. TestCase and its extensions are frozen once built.
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny


# ---------------- page snapshot ----------------
class InteractiveElement(BaseModel):
    """A single interactive element seen on the page."""

    tag: str = ""
    type: Optional[str] = None
    text: Optional[str] = None
    aria_label: Optional[str] = None
    role: Optional[str] = None
    id: Optional[str] = None
    name: Optional[str] = None


class FormInfo(BaseModel):
    """A form seen on the page."""

    action: Optional[str] = None
    method: Optional[str] = None
    fields: List[str] = Field(default_factory=list)


class WebsiteAnalysis(BaseModel):
    """Optional page-structure snapshot handed to the classifier and generators."""

    url: str = ""
    interactive_elements: List[InteractiveElement] = Field(default_factory=list)
    forms: List[FormInfo] = Field(default_factory=list)


class RawInstruction(BaseModel):
    """Free-text instruction plus its target."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    target_url: str = ""
    website_analysis: Optional[WebsiteAnalysis] = None


# ---------------- intent ----------------
class TestDomain(str, Enum):
    __test__ = False

    FUNCTIONAL = "functional"
    ACCESSIBILITY = "accessibility"
    API = "api"
    SECURITY = "security"


MIXED = "mixed"


class TestIntent(BaseModel):
    """Domain classification of one instruction."""

    __test__ = False

    primary_type: str = TestDomain.FUNCTIONAL.value
    secondary_types: List[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    detected_keywords: Dict[str, List[str]] = Field(default_factory=dict)
    use_enhanced_accessibility_parser: bool = False

    def routed_domains(self) -> List[str]:
        """Domains the router should dispatch to, primary first."""
        domains: List[str] = []
        if self.primary_type != MIXED:
            domains.append(self.primary_type)
        for d in self.secondary_types:
            if d not in domains:
                domains.append(d)
        return domains


# ---------------- functional actions ----------------
class ActionType(str, Enum):
    NAVIGATE = "navigate"
    CLICK = "click"
    TYPE = "type"
    SELECT = "select"
    CHECK = "check"
    VERIFY = "verify"
    HOVER = "hover"
    SCROLL = "scroll"


class ParsedAction(BaseModel):
    """One extracted step. step_number is 1-based and gapless."""

    model_config = ConfigDict(frozen=True)

    step_number: int = Field(ge=1)
    type: ActionType
    target: str = ""
    value: Optional[str] = None
    original_line: str = ""
    position: Optional[Union[int, str]] = None


class ElementTarget(BaseModel):
    """How the emitter locates an element: ordered selector candidates plus position."""

    element_type: str = "element"
    selector_candidates: List[str] = Field(default_factory=list)
    search_text: str = ""
    position: Union[int, str] = "first"
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)


# ---------------- accessibility ----------------
class AccessibilityRequirement(BaseModel):
    """A single categorized accessibility check. wcag_criteria is never empty."""

    category: str
    type: str
    description: str = ""
    wcag_criteria: List[str] = Field(min_length=1)
    elements: List[str] = Field(default_factory=list)
    attributes: List[str] = Field(default_factory=list)
    validation_rules: List[str] = Field(default_factory=list)
    scope: Optional[str] = None
    contrast_ratio: Optional[float] = None
    level: Optional[str] = None
    success_criteria: Optional[str] = None
    validation_type: Optional[str] = None
    testing_approach: Optional[str] = None


class AxeCoreIntegration(BaseModel):
    rulesets: List[str] = Field(default_factory=lambda: ["wcag21aa"])
    tags: List[str] = Field(default_factory=list)
    violation_handling: str = "fail-on-violations"
    reporting_level: str = "violations"


class AccessibilityRequirements(BaseModel):
    """Five requirement categories plus axe-core scan settings."""

    dom_inspection: List[AccessibilityRequirement] = Field(default_factory=list)
    keyboard_navigation: List[AccessibilityRequirement] = Field(default_factory=list)
    aria_compliance: List[AccessibilityRequirement] = Field(default_factory=list)
    visual_accessibility: List[AccessibilityRequirement] = Field(default_factory=list)
    wcag_guidelines: List[AccessibilityRequirement] = Field(default_factory=list)
    axe_core_integration: AxeCoreIntegration = Field(default_factory=AxeCoreIntegration)

    def categories(self) -> Dict[str, List[AccessibilityRequirement]]:
        return {
            "dom_inspection": self.dom_inspection,
            "keyboard_navigation": self.keyboard_navigation,
            "aria_compliance": self.aria_compliance,
            "visual_accessibility": self.visual_accessibility,
            "wcag_guidelines": self.wcag_guidelines,
        }

    def all_requirements(self) -> List[AccessibilityRequirement]:
        items: List[AccessibilityRequirement] = []
        for reqs in self.categories().values():
            items.extend(reqs)
        return items

    def is_empty(self) -> bool:
        return not self.all_requirements()


class AccessibilityTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    description: str
    wcag_criteria: List[str]
    required_features: List[str]
    setup_code: str
    code_template: str


class TemplateCustomization(BaseModel):
    feature: str
    enabled: bool = True
    configuration: Dict[str, Any] = Field(default_factory=dict)


class AxeCoreConfig(BaseModel):
    rulesets: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    disabled_rules: List[str] = Field(default_factory=list)
    reporting_level: str = "violations"


class TemplateSelectionResult(BaseModel):
    selected_template: AccessibilityTemplate
    axe_core_config: AxeCoreConfig
    customizations: List[TemplateCustomization] = Field(default_factory=list)


# ---------------- api ----------------
class FieldAssertion(BaseModel):
    field: str
    kind: str  # equals | type | exists
    expected: Optional[str] = None


class APIAction(BaseModel):
    """One ordered verb from an API instruction (send/store/read/compare/count/verify/measure)."""

    step_number: int
    kind: str
    target: str = ""
    detail: Dict[str, Any] = Field(default_factory=dict)
    original_text: str = ""


class APITestMetadata(BaseModel):
    title: str
    description: str
    category: str = "Smoke"


class ParsedAPIInstruction(BaseModel):
    method: str = "GET"
    url: str
    base_url: str
    endpoint: str = "/"
    requires_auth: bool = False
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None
    expected_status: int = 200
    field_assertions: List[FieldAssertion] = Field(default_factory=list)
    count_expectation: Optional[int] = None
    response_time_limit: Optional[int] = None
    actions: List[APIAction] = Field(default_factory=list)
    preconditions: List[str] = Field(default_factory=list)
    metadata: APITestMetadata
    original_text: str = ""


class ApiDetails(BaseModel):
    http_method: str
    endpoint: str
    base_url: str
    request_headers: Dict[str, str] = Field(default_factory=dict)
    request_body: Optional[Dict[str, Any]] = None


class AuthenticationInfo(BaseModel):
    type: str = "None"
    required: bool = False
    header_name: Optional[str] = None
    token_format: Optional[str] = None


class ExpectedResults(BaseModel):
    response_code: int = 200
    response_schema: Dict[str, Any] = Field(default_factory=dict)
    response_time: Optional[int] = None


# ---------------- security ----------------
class SecurityStep(BaseModel):
    step_number: int
    action: str
    target: str = ""
    value: Optional[str] = None
    expected_result: str = ""


class SecurityInstruction(BaseModel):
    url: str
    method: str = "GET"
    intents: List[str] = Field(default_factory=list)
    primary_intent: str = "SEC_GENERIC"
    payload: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[str] = None
    expected_statuses: List[int] = Field(default_factory=lambda: [400, 401, 403])
    steps: List[SecurityStep] = Field(default_factory=list)
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    original_text: str = ""


# ---------------- test case ----------------
class TestStep(BaseModel):
    __test__ = False

    step_number: int
    action: str
    expected_result: str = ""
    data: Optional[str] = None


class ValidationCriteria(BaseModel):
    compliance: List[str] = Field(default_factory=list)
    behavior: List[str] = Field(default_factory=list)


class QualityMetrics(BaseModel):
    confidence: int = Field(default=50, ge=0, le=100)
    stability: int = Field(default=50, ge=0, le=100)
    maintainability: int = Field(default=50, ge=0, le=100)


class TestCase(BaseModel):
    """A generated test case. automation_mapping holds the emitted script."""

    __test__ = False
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    test_type: str
    category: str = "Regression"
    priority: str = "Medium"
    severity: str = "Medium"
    stability: str = "Stable"
    preconditions: List[str] = Field(default_factory=list)
    steps: List[TestStep] = Field(default_factory=list)
    expected_result: str = ""
    validation_criteria: ValidationCriteria = Field(default_factory=ValidationCriteria)
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)
    automation_mapping: str = ""
    tags: List[str] = Field(default_factory=list)


class AccessibilityTestCase(TestCase):
    wcag_version: str = "2.1"
    wcag_principle: List[str] = Field(default_factory=list)
    wcag_success_criteria: List[str] = Field(default_factory=list)
    assistive_technology: List[str] = Field(default_factory=list)
    accessibility_tags: List[str] = Field(default_factory=list)
    keyboard_access: bool = False


class APITestCase(TestCase):
    api_details: Optional[ApiDetails] = None
    authentication: AuthenticationInfo = Field(default_factory=AuthenticationInfo)
    expected_results: ExpectedResults = Field(default_factory=ExpectedResults)


# ---------------- router contract ----------------
class GenerationRequest(BaseModel):
    """Input of generate_tests. url is validated by the router, not here."""

    url: Optional[str] = None
    prompt: str = ""
    website_analysis: Optional[WebsiteAnalysis] = None
    security_enabled: bool = False
    include_input_validation: bool = False


class GenerationSummary(BaseModel):
    total_tests: int = 0
    by_type: Dict[str, int] = Field(default_factory=dict)
    intent: Dict[str, Any] = Field(default_factory=dict)
    generators_used: Dict[str, int] = Field(default_factory=dict)
    coverage_areas: List[str] = Field(default_factory=list)
    errors: List[Dict[str, str]] = Field(default_factory=list)


class GenerationResult(BaseModel):
    test_cases: List[SerializeAsAny[TestCase]] = Field(default_factory=list)
    summary: GenerationSummary = Field(default_factory=GenerationSummary)
    intent: TestIntent
    analysis: WebsiteAnalysis
