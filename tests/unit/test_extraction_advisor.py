"""Unit tests for the extraction advisor in jsx_change_engine.analysis.extraction_advisor."""

import pytest

from jsx_change_engine.analysis.extraction_advisor import (
    ExtractionAdvisor,
    complexity_label,
    component_name,
)

REPEATED_SECTIONS = """\
export function List() {
  return (
    <div>
      <section>
        <h2>One</h2>
        <p>Body</p>
        <p>More</p>
      </section>
      <section>
        <h2>One</h2>
        <p>Body</p>
        <p>More</p>
      </section>
    </div>
  );
}
"""

SIGNUP_FORM = """\
import { useState } from 'react';
import Button from './Button';

export default function Signup() {
  const [email, setEmail] = useState('');
  const handleSubmit = (e) => e.preventDefault();

  return (
    <div>
      <form onSubmit={handleSubmit}>
        <input value={email} onChange={(e) => setEmail(e.target.value)} />
        <Button type="submit">Sign up</Button>
      </form>
    </div>
  );
}
"""


class TestHelpers:
    """Test naming and labelling helpers."""

    @pytest.mark.parametrize(("lines", "label"), [(10, "LOW"), (26, "MEDIUM"), (51, "HIGH")])
    def test_complexity_label(self, lines: int, label: str) -> None:
        assert complexity_label(lines) == label

    def test_component_name(self) -> None:
        assert component_name("src/components/dashboard.tsx", "Card", 0) == "DashboardCard"
        assert component_name("src/App.jsx", "Form", 1) == "AppForm2"
        assert component_name(".tsx", "Item", 0) == "ComponentItem"


class TestAnalyzeFile:
    """Test per-file analysis."""

    def test_duplicated_blocks(self) -> None:
        analysis = ExtractionAdvisor().analyze_file("src/List.tsx", REPEATED_SECTIONS)
        assert analysis.needs_extraction is False
        assert len(analysis.suggestions) == 1
        suggestion = analysis.suggestions[0]
        assert suggestion.component_name == "ListBlock"
        assert suggestion.reason == "JSX block repeated 2 times"
        assert suggestion.line_end - suggestion.line_start == 4
        assert suggestion.complexity == "LOW"
        assert suggestion.estimated_props == ()

    def test_duplicates_below_threshold_are_ignored(self) -> None:
        advisor = ExtractionAdvisor(min_duplicate_block_lines=6)
        assert advisor.analyze_file("src/List.tsx", REPEATED_SECTIONS).suggestions == []

    def test_oversized_elements(self) -> None:
        advisor = ExtractionAdvisor(max_jsx_block_lines=10, min_duplicate_block_lines=50)
        analysis = advisor.analyze_file("src/List.tsx", REPEATED_SECTIONS)
        assert [s.component_name for s in analysis.suggestions] == ["ListSection"]
        assert analysis.suggestions[0].reason == "JSX block longer than 10 lines"

    def test_named_sections_in_long_files(self) -> None:
        advisor = ExtractionAdvisor(max_file_lines=5)
        analysis = advisor.analyze_file("src/Signup.jsx", SIGNUP_FORM)
        assert analysis.needs_extraction is True
        form = next(s for s in analysis.suggestions if s.reason == "Form element detected")
        assert form.component_name == "SignupForm"
        assert form.estimated_props == ("handleSubmit", "email", "setEmail")

    def test_named_sections_need_long_file(self) -> None:
        analysis = ExtractionAdvisor().analyze_file("src/Signup.jsx", SIGNUP_FORM)
        assert analysis.needs_extraction is False
        assert analysis.suggestions == []

    def test_complexity_score(self) -> None:
        analysis = ExtractionAdvisor().analyze_file("src/Signup.jsx", SIGNUP_FORM)
        assert 0 < analysis.complexity_score <= 100

    def test_non_source_files_get_bare_analysis(self) -> None:
        analysis = ExtractionAdvisor(max_file_lines=1).analyze_file("notes.md", "a\nb\nc\n")
        assert analysis.total_lines == 4
        assert analysis.needs_extraction is True
        assert analysis.complexity_score == 0.0
        assert analysis.suggestions == []

    def test_unparseable_files_are_skipped(self) -> None:
        analysis = ExtractionAdvisor().analyze_file("src/Bad.tsx", "export const A = <div>;\n")
        assert analysis.suggestions == []
        assert analysis.complexity_score == 0.0


class TestSuggest:
    """Test multi-file suggestion helpers."""

    def test_analyze_files_sorts_by_complexity(self, counter_source: str) -> None:
        analyses = ExtractionAdvisor().analyze_files(
            {"src/Counter.tsx": counter_source, "src/Signup.jsx": SIGNUP_FORM}
        )
        assert [a.file_path for a in analyses] == ["src/Signup.jsx", "src/Counter.tsx"]

    def test_suggest_flattens(self) -> None:
        suggestions = ExtractionAdvisor().suggest({"src/List.tsx": REPEATED_SECTIONS})
        assert [s.file_path for s in suggestions] == ["src/List.tsx"]

    def test_should_suggest_extraction(self, counter_source: str) -> None:
        advisor = ExtractionAdvisor(max_file_lines=10)
        assert advisor.should_suggest_extraction("src/A.tsx", counter_source, SIGNUP_FORM)
        assert not advisor.should_suggest_extraction("src/A.tsx", counter_source, counter_source)
