"""
Tests for converting raw DOM records into a WebsiteAnalysis, and for how the
app degrades when the browser snapshot fails
"""
import asyncio

import main
from analysis.website_analyzer import MAX_ELEMENTS, build_website_analysis
from core.errors import AnalysisError


class TestBuildWebsiteAnalysis:
    """Pure conversion, no browser"""

    def test_elements_and_forms(self):
        analysis = build_website_analysis(
            "https://example.com/login",
            [
                {"tag": "INPUT", "type": "text", "id": "username", "name": "username", "text": ""},
                {"tag": "button", "text": " Login ", "ariaLabel": "Log in", "role": None},
            ],
            [{"action": "/login", "method": "post", "fields": ["username", "password", None]}],
        )
        assert analysis.url == "https://example.com/login"
        first, second = analysis.interactive_elements
        assert first.tag == "input"
        assert first.text is None
        assert second.text == "Login"
        assert second.aria_label == "Log in"
        assert analysis.forms[0].fields == ["username", "password"]

    def test_malformed_records_are_skipped(self):
        analysis = build_website_analysis("https://example.com", [None, "a", {"type": "text"}, {"tag": "a"}], [1, {}])
        assert [e.tag for e in analysis.interactive_elements] == ["a"]
        assert len(analysis.forms) == 1

    def test_snake_case_aria_label(self):
        analysis = build_website_analysis("https://example.com", [{"tag": "a", "aria_label": "Home"}])
        assert analysis.interactive_elements[0].aria_label == "Home"

    def test_element_cap(self):
        raw = [{"tag": "a", "text": str(i)} for i in range(MAX_ELEMENTS + 50)]
        assert len(build_website_analysis("https://example.com", raw).interactive_elements) == MAX_ELEMENTS

    def test_empty(self):
        analysis = build_website_analysis("https://example.com")
        assert analysis.interactive_elements == [] and analysis.forms == []


class TestAnalysisFallback:
    """A failed snapshot never fails generation"""

    def test_analysis_error_degrades(self, monkeypatch, router, store):
        async def failing(url, settings=None):
            raise AnalysisError("browser unavailable")

        monkeypatch.setattr(main, "analyze_website", failing)
        app = main._SimpleApp(router=router, store=store)
        result = asyncio.run(app.agenerate({
            "url": "https://example.com", "prompt": "Test the homepage", "analyze_website": True,
        }))
        assert result.summary.total_tests == 3
        assert result.analysis.interactive_elements == []

    def test_analysis_feeds_the_classifier(self, monkeypatch, router, store, sample_analysis):
        async def snapshot(url, settings=None):
            return sample_analysis

        monkeypatch.setattr(main, "analyze_website", snapshot)
        app = main._SimpleApp(router=router, store=store)
        result = asyncio.run(app.agenerate({
            "url": "https://example.com/login", "prompt": "Test the homepage", "analyze_website": True,
        }))
        assert result.analysis == sample_analysis
        assert result.intent.confidence > 0
