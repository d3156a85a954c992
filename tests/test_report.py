import json

from revdeps.core.errors import FailureKind
from revdeps.core.models import (
    DependencyRecord,
    DependencyReport,
    FileDiagnostic,
    LibraryUsage,
)
from revdeps.output.report import RevdepsReportGenerator, render_text


def sample_report() -> DependencyReport:
    return DependencyReport(
        root="/opt/bin",
        libraries=[
            LibraryUsage(library="liby.so", dependents=["b.bin"]),
            LibraryUsage(library="libx.so", dependents=["a.bin", "b.bin"]),
        ],
        records=[
            DependencyRecord(file_name="a.bin", libraries=["libx.so"]),
            DependencyRecord(file_name="b.bin", libraries=["libx.so", "liby.so"]),
        ],
        diagnostics=[
            FileDiagnostic(
                file_name="corrupt.bin",
                kind=FailureKind.MALFORMED_HEADER,
                message="section header table exceeds file size",
            ),
        ],
        files_scanned=3,
    )


def test_render_text_blocks():
    assert render_text(sample_report().libraries) == (
        "liby.so (1 exes)\n"
        "\t<= b.bin\n"
        "\n"
        "libx.so (2 exes)\n"
        "\t<= a.bin\n"
        "\t<= b.bin\n"
        "\n"
    )


def test_render_text_empty():
    assert render_text([]) == ""


def test_json_structure():
    data = json.loads(RevdepsReportGenerator().to_json(sample_report()))
    assert data["root"] == "/opt/bin"
    assert data["summary"]["objects_parsed"] == 2
    assert data["summary"]["files_skipped"] == 1
    assert data["libraries"][1] == {
        "library": "libx.so",
        "count": 2,
        "dependents": ["a.bin", "b.bin"],
    }
    assert data["diagnostics"][0]["kind"] == "MALFORMED_HEADER"
    assert "soname" not in data["records"][0]


def test_generate_files(tmp_path):
    generator = RevdepsReportGenerator()
    report = sample_report()

    text_path = generator.generate_text(report, str(tmp_path / "out" / "deps.txt"))
    assert open(text_path, encoding="utf-8").read() == render_text(report.libraries)

    json_path = generator.generate_json(report, str(tmp_path / "deps.json"))
    with open(json_path, encoding="utf-8") as fh:
        assert json.load(fh)["summary"]["libraries"] == 2
