"""Tests for keyword extraction."""

from llmdiff.keywords import KeywordExtractor


class TestKeywordExtractor:
    """Test KeywordExtractor class."""

    def test_python_definitions(self):
        """Classes and functions are listed in order of appearance."""
        lines = [
            "import os",
            "class Parser:",
            "    def parse(self):",
            "        pass",
            "async def fetch():",
            "    def parse(self):",
        ]
        assert KeywordExtractor().extract("pkg/parser.py", lines) == ["Parser", "parse", "fetch"]

    def test_rust_definitions(self):
        """Structs, functions and impl targets are found."""
        lines = [
            "pub struct Config {",
            "    name: String,",
            "}",
            "impl Display for Config {",
            "pub(crate) async fn load() -> Config {",
            "enum Mode { A, B }",
        ]
        assert KeywordExtractor().extract("src/config.rs", lines) == ["Config", "load", "Mode"]

    def test_go_definitions(self):
        """Types and functions, including methods, are found."""
        lines = [
            "type Server struct {",
            "func (s *Server) Start() error {",
            "func main() {",
        ]
        assert KeywordExtractor().extract("cmd/main.go", lines) == ["Server", "Start", "main"]

    def test_javascript_definitions(self):
        """Classes, functions and arrow functions bound to constants are found."""
        lines = [
            "export default class Widget extends Base {",
            "function render(props) {",
            "export const handler = async (event) => {",
            "const VALUE = 3;",
            "interface Props {",
        ]
        assert KeywordExtractor().extract("ui/widget.tsx", lines) == ["Widget", "render", "handler", "Props"]

    def test_c_definitions_skip_control_flow(self):
        """Control-flow keywords are never reported as functions."""
        lines = [
            "struct point {",
            "static int add(int a, int b)",
            "{",
            "else if (a > b) {",
            "    return add(a, b);",
            "int main(void) {",
        ]
        assert KeywordExtractor().extract("src/math.c", lines) == ["point", "add", "main"]

    def test_json_top_level_keys(self):
        """Only top-level keys are listed, in document order."""
        lines = [
            "{",
            '  "name": "demo",',
            '  "version": "1.0.0",',
            '  "scripts": {"build": "tsc"},',
            '  "name": "duplicate"',
            "}",
        ]
        assert KeywordExtractor().extract("package.json", lines) == ["name", "version", "scripts"]

    def test_json_fragment_falls_back_to_indentation(self):
        """Partial documents use the least-indented key lines."""
        lines = [
            '  "name": "demo",',
            '  "dependencies": {',
            '    "left-pad": "1.0.0"',
            "  },",
        ]
        assert KeywordExtractor().extract("package.json", lines) == ["name", "dependencies"]

    def test_json_array_has_no_keywords(self):
        """A top-level array has no keys."""
        assert KeywordExtractor().extract("data.json", ["[1, 2, 3]"]) == []

    def test_unknown_extension(self):
        """Unsupported file types yield no keywords."""
        assert KeywordExtractor().extract("notes.txt", ["class Foo:"]) == []
        assert KeywordExtractor().extract("Makefile", ["def foo():"]) == []

    def test_limit(self):
        """No more than ``max_keywords`` names are returned."""
        lines = [f"def f{i}():" for i in range(20)]
        assert len(KeywordExtractor().extract("a.py", lines)) == 10
        assert KeywordExtractor(max_keywords=3).extract("a.py", lines) == ["f0", "f1", "f2"]
        assert KeywordExtractor(max_keywords=0).extract("a.py", lines) == []

    def test_markdown_headings(self):
        """Markdown headings identify documents."""
        lines = ["# Title", "text", "## Usage ##"]
        assert KeywordExtractor().extract("README.md", lines) == ["Title", "Usage"]

    def test_extension_is_case_insensitive(self):
        """Upper-case extensions are recognized."""
        assert KeywordExtractor().extract("LEGACY.PY", ["class Old:"]) == ["Old"]

    def test_carriage_returns_are_ignored(self):
        """CRLF content does not leak into names."""
        assert KeywordExtractor().extract("a.py", ["def run():\r"]) == ["run"]
