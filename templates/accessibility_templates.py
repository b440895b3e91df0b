# templates/accessibility_templates.py
"""
Accessibility template registry and selection.

Each template is a Playwright test skeleton with {{PLACEHOLDER}} slots for the
category code blocks and the axe-core scan. Helper objects are declared inside
the test body so a rendered template stays one import block plus one test.
"""
import re
from types import MappingProxyType
from typing import Any, Dict, List, Mapping

from core.errors import TemplateSelectionError
from core.models import (
    AccessibilityRequirements, AccessibilityTemplate, AxeCoreConfig, TemplateCustomization,
    TemplateSelectionResult,
)
from logging_config import get_agent_logger

logger = get_agent_logger("A11Y")

FEATURE_NAMES: Dict[str, str] = {
    "dom-inspection": "DOM Inspection",
    "keyboard-navigation": "Keyboard Navigation",
    "aria-compliance": "ARIA Compliance",
    "visual-accessibility": "Visual Accessibility",
    "wcag-guidelines": "WCAG Guidelines",
    "axe-core-integration": "Axe-Core Integration",
}

CATEGORY_FEATURES: Dict[str, str] = {
    "dom_inspection": "dom-inspection",
    "keyboard_navigation": "keyboard-navigation",
    "aria_compliance": "aria-compliance",
    "visual_accessibility": "visual-accessibility",
    "wcag_guidelines": "wcag-guidelines",
}

BASE_RULESETS = ("wcag2a", "wcag2aa", "wcag21a", "wcag21aa")
BASE_TAGS = ("wcag2a", "wcag2aa", "wcag21aa")


# ---------------- helper objects (rendered inside the test body) ----------------
_DOM_HELPERS = """const DOMInspectionUtils = {
  async imageAltReport(page) {
    const images = await page.locator('img, svg[role="img"], [role="img"]').all();
    const report = [];
    for (const image of images) {
      const alt = await image.getAttribute('alt');
      const role = await image.getAttribute('role');
      report.push({ hasAlt: alt !== null, decorative: alt === '' || role === 'presentation' });
    }
    return report;
  },
  async unlabeledInputs(page) {
    const inputs = await page.locator('input:not([type="hidden"]), select, textarea').all();
    let missing = 0;
    for (const input of inputs) {
      const id = await input.getAttribute('id');
      const named = (await input.getAttribute('aria-label')) || (await input.getAttribute('aria-labelledby'));
      const labelled = id ? (await page.locator(`label[for="${id}"]`).count()) > 0 : false;
      if (!named && !labelled) missing++;
    }
    return missing;
  }
};"""

_KEYBOARD_HELPERS = """const KeyboardUtils = {
  async focusedElement(page) {
    return await page.evaluate(() => {
      const el = document.activeElement;
      return { tag: el?.tagName.toLowerCase(), id: el?.id, text: el?.textContent?.trim().substring(0, 50) };
    });
  },
  async tabSequence(page, maxStops = 10) {
    const stops = [];
    for (let i = 0; i < maxStops; i++) {
      await page.keyboard.press('Tab');
      stops.push(await KeyboardUtils.focusedElement(page));
    }
    return stops;
  }
};"""

_ARIA_HELPERS = """const ARIAUtils = {
  async elementsWithoutName(page) {
    const elements = await page.locator('button, a, input, select, textarea, [role="button"], [role="link"]').all();
    let missing = 0;
    for (const element of elements) {
      const label = await element.getAttribute('aria-label');
      const labelledBy = await element.getAttribute('aria-labelledby');
      const text = (await element.textContent())?.trim();
      const title = await element.getAttribute('title');
      if (!label && !labelledBy && !text && !title) missing++;
    }
    return missing;
  },
  async invalidStates(page) {
    const elements = await page.locator('[aria-expanded], [aria-selected], [aria-checked], [aria-pressed]').all();
    let invalid = 0;
    for (const element of elements) {
      for (const attr of ['aria-expanded', 'aria-selected', 'aria-checked', 'aria-pressed']) {
        const value = await element.getAttribute(attr);
        if (value !== null && !['true', 'false', 'mixed'].includes(value)) invalid++;
      }
    }
    return invalid;
  }
};"""

_VISUAL_HELPERS = """const VisualUtils = {
  async colorInfo(page, selector) {
    return await page.evaluate((sel) => {
      const el = document.querySelector(sel);
      if (!el) return null;
      const styles = window.getComputedStyle(el);
      const size = parseFloat(styles.fontSize);
      const large = size >= 18 || (size >= 14 && parseInt(styles.fontWeight) >= 700);
      return { color: styles.color, background: styles.backgroundColor, large };
    }, selector);
  },
  async focusIndicator(locator) {
    await locator.focus();
    return await locator.evaluate((el) => {
      const styles = window.getComputedStyle(el);
      return (styles.outlineStyle !== 'none' && styles.outlineWidth !== '0px') || styles.boxShadow !== 'none';
    });
  }
};"""

_WCAG_HELPERS = """const WCAGUtils = {
  async headingLevels(page) {
    return await page.locator('h1, h2, h3, h4, h5, h6').evaluateAll((els) => els.map((el) => parseInt(el.tagName.substring(1))));
  },
  async landmarkCounts(page) {
    return {
      main: await page.locator('main, [role="main"]').count(),
      banner: await page.locator('header, [role="banner"]').count(),
      navigation: await page.locator('nav, [role="navigation"]').count(),
      contentinfo: await page.locator('footer, [role="contentinfo"]').count()
    };
  }
};"""


def _skeleton(*placeholders: str) -> str:
    slots = "\n\n".join(f"  {{{{{p}}}}}" for p in placeholders)
    return (
        "test('{{TEST_NAME}}', async ({ page }) => {\n"
        "  {{SETUP_CODE}}\n\n"
        "  await page.goto('{{URL}}');\n"
        "  await page.waitForLoadState('networkidle');\n\n"
        f"{slots}\n\n"
        "  {{AXE_CORE_INTEGRATION_CODE}}\n"
        "});\n"
    )


_TEMPLATES: Dict[str, AccessibilityTemplate] = {
    "comprehensive": AccessibilityTemplate(
        key="comprehensive",
        name="Comprehensive Accessibility Testing",
        description="Complete accessibility suite with DOM inspection, keyboard navigation, ARIA compliance, "
                    "visual accessibility, and WCAG validation",
        wcag_criteria=["1.1.1", "1.3.1", "1.4.3", "1.4.11", "2.1.1", "2.1.2", "2.4.1", "2.4.3", "2.4.6",
                       "2.4.7", "3.3.2", "4.1.2", "4.1.3"],
        required_features=list(FEATURE_NAMES),
        setup_code="\n\n".join([_DOM_HELPERS, _KEYBOARD_HELPERS, _ARIA_HELPERS, _VISUAL_HELPERS, _WCAG_HELPERS]),
        code_template=_skeleton("DOM_INSPECTION_CODE", "KEYBOARD_NAVIGATION_CODE", "ARIA_COMPLIANCE_CODE",
                                "VISUAL_ACCESSIBILITY_CODE", "WCAG_GUIDELINES_CODE"),
    ),
    "domInspection": AccessibilityTemplate(
        key="domInspection",
        name="DOM Inspection and Semantic HTML",
        description="DOM structure, semantic HTML, image alt attributes, form labels, and heading hierarchy",
        wcag_criteria=["1.1.1", "1.3.1", "2.4.6", "3.3.2", "4.1.2"],
        required_features=["dom-inspection", "axe-core-integration"],
        setup_code=_DOM_HELPERS,
        code_template=_skeleton("DOM_INSPECTION_CODE"),
    ),
    "keyboardNavigation": AccessibilityTemplate(
        key="keyboardNavigation",
        name="Keyboard Navigation and Focus Management",
        description="Keyboard accessibility, tab sequences, focus order, and keyboard activation patterns",
        wcag_criteria=["2.1.1", "2.1.2", "2.4.3", "2.4.7"],
        required_features=["keyboard-navigation", "axe-core-integration"],
        setup_code=_KEYBOARD_HELPERS,
        code_template=_skeleton("KEYBOARD_NAVIGATION_CODE"),
    ),
    "ariaCompliance": AccessibilityTemplate(
        key="ariaCompliance",
        name="ARIA Compliance and Screen Reader Support",
        description="ARIA attributes, labels, descriptions, live regions, and screen reader compatibility",
        wcag_criteria=["1.3.1", "4.1.2", "4.1.3"],
        required_features=["aria-compliance", "axe-core-integration"],
        setup_code=_ARIA_HELPERS,
        code_template=_skeleton("ARIA_COMPLIANCE_CODE"),
    ),
    "visualAccessibility": AccessibilityTemplate(
        key="visualAccessibility",
        name="Visual Accessibility and Color Contrast",
        description="Color contrast ratios, focus indicators, and visual accessibility requirements",
        wcag_criteria=["1.4.3", "1.4.11", "2.4.7"],
        required_features=["visual-accessibility", "axe-core-integration"],
        setup_code=_VISUAL_HELPERS,
        code_template=_skeleton("VISUAL_ACCESSIBILITY_CODE"),
    ),
    "wcagGuidelines": AccessibilityTemplate(
        key="wcagGuidelines",
        name="WCAG Guidelines and Success Criteria",
        description="Specific WCAG success criteria including heading hierarchy, skip links, and page structure",
        wcag_criteria=["1.3.1", "2.4.1", "2.4.6", "3.3.2"],
        required_features=["wcag-guidelines", "axe-core-integration"],
        setup_code=_WCAG_HELPERS,
        code_template=_skeleton("WCAG_GUIDELINES_CODE"),
    ),
}

ACCESSIBILITY_TEMPLATES: Mapping[str, AccessibilityTemplate] = MappingProxyType(_TEMPLATES)

# single focus area → specialized template, checked in this order
_SPECIALIZED = (
    ("dom-inspection", "domInspection"),
    ("keyboard-navigation", "keyboardNavigation"),
    ("aria-compliance", "ariaCompliance"),
    ("visual-accessibility", "visualAccessibility"),
    ("wcag-guidelines", "wcagGuidelines"),
)


def required_features(requirements: AccessibilityRequirements) -> List[str]:
    features = [CATEGORY_FEATURES[name] for name, reqs in requirements.categories().items() if reqs]
    features.append("axe-core-integration")
    return features


def get_feature_configuration(feature: str, requirements: AccessibilityRequirements) -> Dict[str, Any]:
    def has(reqs, kind):
        return any(r.type == kind for r in reqs)

    if feature == "dom-inspection":
        reqs = requirements.dom_inspection
        return {
            "imageAlt": has(reqs, "image-alt"),
            "formLabels": has(reqs, "form-labels"),
            "headingHierarchy": has(reqs, "heading-hierarchy"),
            "landmarks": has(reqs, "landmarks"),
            "semanticHTML": has(reqs, "semantic-html"),
        }
    if feature == "keyboard-navigation":
        reqs = requirements.keyboard_navigation
        return {
            "tabSequence": has(reqs, "tab-sequence"),
            "focusOrder": has(reqs, "focus-order"),
            "keyboardActivation": has(reqs, "keyboard-activation"),
            "focusManagement": has(reqs, "focus-management"),
        }
    if feature == "aria-compliance":
        reqs = requirements.aria_compliance
        return {
            "ariaLabels": has(reqs, "aria-labels"),
            "ariaDescriptions": has(reqs, "aria-descriptions"),
            "ariaLiveRegions": has(reqs, "aria-live-regions"),
            "ariaStates": has(reqs, "aria-states"),
            "ariaRoles": has(reqs, "aria-roles"),
        }
    if feature == "visual-accessibility":
        reqs = requirements.visual_accessibility
        return {
            "colorContrast": has(reqs, "color-contrast"),
            "focusIndicators": has(reqs, "focus-indicators"),
            "interactiveElementContrast": has(reqs, "interactive-element-contrast"),
        }
    if feature == "wcag-guidelines":
        reqs = requirements.wcag_guidelines
        return {
            "successCriteria": [r.success_criteria or r.wcag_criteria[0] for r in reqs],
            "levels": list(dict.fromkeys(r.level for r in reqs if r.level)),
        }
    if feature == "axe-core-integration":
        axe = requirements.axe_core_integration
        return {"rulesets": list(axe.rulesets) or list(BASE_TAGS), "reportingLevel": axe.reporting_level}
    return {}


_SECTION_508 = re.compile(r"\bsection\s*508\b|(?<![\w.])508(?![\w.])")


def build_axe_config(text: str, reporting_level: str = "violations") -> AxeCoreConfig:
    t = (text or "").lower()
    rulesets, tags = list(BASE_RULESETS), list(BASE_TAGS)
    if "wcag 2.2" in t or "wcag22" in t:
        rulesets.append("wcag22aa")
        tags.append("wcag22aa")
    if _SECTION_508.search(t):
        rulesets.append("section508")
        tags.append("section508")
    return AxeCoreConfig(rulesets=rulesets, tags=tags, reporting_level=reporting_level)


def _pick_template(features: List[str]) -> AccessibilityTemplate:
    if len(features) <= 2:
        for feature, key in _SPECIALIZED:
            if feature in features:
                return ACCESSIBILITY_TEMPLATES[key]
    return ACCESSIBILITY_TEMPLATES["comprehensive"]


def _select(requirements: AccessibilityRequirements, text: str) -> TemplateSelectionResult:
    if requirements is None:
        raise TemplateSelectionError("requirements are missing")
    features = required_features(requirements)
    template = _pick_template(features)
    customizations = [
        TemplateCustomization(feature=f, configuration=get_feature_configuration(f, requirements))
        for f in features
    ]
    return TemplateSelectionResult(
        selected_template=template,
        axe_core_config=build_axe_config(text, requirements.axe_core_integration.reporting_level),
        customizations=customizations,
    )


def select_template(requirements: AccessibilityRequirements, text: str = "") -> TemplateSelectionResult:
    """
    Pick the template for the requirements. Never raises: any inconsistency
    resolves to the comprehensive template with the base axe configuration.
    """
    try:
        result = _select(requirements, text)
    except Exception as e:
        logger.error(f"❌ Template selection failed, using comprehensive template: {e}")
        return TemplateSelectionResult(
            selected_template=ACCESSIBILITY_TEMPLATES["comprehensive"],
            axe_core_config=build_axe_config(""),
            customizations=[TemplateCustomization(feature="axe-core-integration")],
        )
    logger.info(f"🧩 Template → {result.selected_template.name}")
    return result


# ---------------- axe-core scan ----------------
def _js_list(items: List[str]) -> str:
    return ", ".join(f"'{i}'" for i in items)


def generate_axe_core_code(config: AxeCoreConfig) -> str:
    lines = [
        "// Accessibility scan with axe-core",
        "const accessibilityScanResults = await new AxeBuilder({ page })",
        f"  .withTags([{_js_list(config.tags)}])",
    ]
    if config.disabled_rules:
        lines.append(f"  .disableRules([{_js_list(config.disabled_rules)}])")
    lines += [
        "  .analyze();",
        "",
        "if (accessibilityScanResults.violations.length > 0) {",
        "  console.error('Accessibility violations found:', accessibilityScanResults.violations.map((v) => ({",
        "    id: v.id, impact: v.impact, description: v.description, nodes: v.nodes.length",
        "  })));",
        "}",
        "expect(accessibilityScanResults.violations).toHaveLength(0);",
    ]
    if config.reporting_level in ("incomplete", "all"):
        lines += [
            "",
            "if (accessibilityScanResults.incomplete.length > 0) {",
            "  console.log('Incomplete checks (manual review needed):', accessibilityScanResults.incomplete.map((i) => i.id));",
            "}",
        ]
    if config.reporting_level in ("passes", "all"):
        lines += [
            "",
            "expect(accessibilityScanResults.passes.length).toBeGreaterThan(0);",
            "console.log(`Accessibility scan passed ${accessibilityScanResults.passes.length} checks`);",
        ]
    return "\n".join(lines)


def generate_feedback(template: AccessibilityTemplate, features: List[str]) -> str:
    enabled = ", ".join(FEATURE_NAMES.get(f, f) for f in features if f != "axe-core-integration")
    return "\n".join([
        "🔍 Enhanced Accessibility Testing Activated",
        "",
        f"Template: {template.name}",
        f"Features: {enabled}",
        f"WCAG Criteria: {', '.join(template.wcag_criteria)}",
        "",
        "✅ Axe-Core integration included automatically",
        "✅ Accessibility-based selectors enabled",
    ])
