"""
Tests for the functional generator and the validation-scenario catalog
"""
from generators.functional_generator import detect_flow, functional_preconditions, generate_functional_tests
from utility.test_case_formatter import TestIdSequence
from utility.validation_scenarios import get_validation_scenarios

URL = "https://example.com/login"
LOGIN = "Enter username as 'tomsmith', enter password as 'SuperSecret!', click Login"


class TestInstructionPath:
    """Specific prompts give exactly one mirrored case"""

    def test_single_case(self):
        cases = generate_functional_tests(URL, LOGIN)
        assert len(cases) == 1
        case = cases[0]
        assert case.id == "FT-001"
        assert case.test_type == "Functional"
        assert case.category == "Authentication"
        assert [s.step_number for s in case.steps] == list(range(1, len(case.steps) + 1))
        assert case.steps[0].action == f"Navigate to {URL}"

    def test_script_mirrors_step_order(self):
        script = generate_functional_tests(URL, LOGIN)[0].automation_mapping
        first = script.index("fill('tomsmith')")
        second = script.index("fill('SuperSecret!')")
        third = script.index(".click()")
        assert first < second < third

    def test_login_preconditions(self):
        case = generate_functional_tests(URL, LOGIN)[0]
        assert case.preconditions == [
            "Page is accessible", "Browser supports JavaScript",
            "User has valid credentials", "All required form fields are visible",
        ]

    def test_input_validation_is_opt_in(self):
        assert len(generate_functional_tests(URL, LOGIN)) == 1
        cases = generate_functional_tests(URL, LOGIN, include_input_validation=True)
        assert len(cases) == 3
        assert cases[1].title == "Input Validation: username"
        assert cases[1].id.startswith("IV-")
        assert "Validation rules are active" in cases[1].preconditions


class TestTemplatePath:
    """Generic prompts give the three-case suite"""

    def test_three_cases(self):
        cases = generate_functional_tests(URL, "Test the homepage")
        assert [c.title for c in cases][0] == "Page Load and Core Elements"
        assert len(cases) == 3
        assert cases[0].category == "Smoke"
        assert cases[2].category == "Regression"
        assert [c.id for c in cases] == ["FT-001", "FT-002", "FT-003"]

    def test_shared_id_sequence(self):
        ids = TestIdSequence()
        generate_functional_tests(URL, "Test the homepage", ids=ids)
        assert ids.next_id("Functional") == "FT-004"

    def test_flow_detection(self):
        assert detect_flow("login with my account") == "Authentication"
        assert detect_flow("submit the contact form") == "Form Submission"
        assert detect_flow("open the menu links") == "Navigation"
        assert detect_flow("hover the card") == "Interaction"
        assert detect_flow("homepage") == "General"
        assert functional_preconditions("General") == ["Page is accessible", "Browser supports JavaScript"]


class TestValidationScenarios:
    """Per-field probes"""

    def test_catalog(self):
        assert [s["value"] for s in get_validation_scenarios("username")] == ["", "ab", "validuser123"]
        assert [s["value"] for s in get_validation_scenarios("password")] == ["", "123", "SecurePass123!"]
        assert [s["value"] for s in get_validation_scenarios("email")] == ["", "invalidemail", "test@example.com"]
        assert [s["scenario"] for s in get_validation_scenarios("zip")] == ["Empty field", "Valid input"]
