"""Context assembler tests."""

import json

from tests.fakes import GPX_ROUTE, make_descriptor


def file_content(name, content=None, kind="pdf", error=None):
    from grancamino.services.classifier import FileKind
    from grancamino.services.context import FileContent
    return FileContent(make_descriptor(name, name), FileKind(kind), content=content, error=error)


class TestFileBlocks:
    """Tests for per-file serialization."""

    def test_large_file_truncated_next_file_complete(self):
        """A 60,000-char file is cut to 5,000 chars plus marker; the next file is intact."""
        from grancamino.core.constants import CONTEXT_LABELS, Language
        from grancamino.services.context import ContextAssembler

        big = "a" * 60000
        small = "b" * 1000
        text = ContextAssembler().assemble_files(
            [file_content("big.pdf", big), file_content("small.pdf", small)],
            Language.SPANISH,
        )

        marker = CONTEXT_LABELS[Language.SPANISH]["truncated"]
        big_section = text.split("#### small.pdf")[0]
        assert "a" * 5000 in big_section
        assert "a" * 5001 not in big_section
        assert marker in big_section
        assert small in text

    def test_unavailable_file_has_marker_and_reason(self):
        from grancamino.core.constants import Language
        from grancamino.services.context import ContextAssembler

        block = ContextAssembler().file_block(
            file_content("etapa.gpx", kind="track-gpx", error="malformed track"), Language.ENGLISH
        )

        assert block.startswith("#### etapa.gpx (track-gpx)\n")
        assert "(file not available: malformed track)" in block

    def test_track_serializes_to_summary(self):
        from grancamino.services.context import serialize_content
        from grancamino.services.tracks import parse_gpx

        summary = json.loads(serialize_content(parse_gpx(GPX_ROUTE)))

        assert summary["distance_km"] == 8.1
        assert summary["points"] == 2
        assert "directions" in summary

    def test_tabular_content_serializes_to_json(self):
        from grancamino.services.context import serialize_content

        rows = {"Hoteles": [{"etapa": "1", "hotel": "Feel Viana"}]}

        assert json.loads(serialize_content(rows)) == rows

    def test_context_budget_marks_omitted_files(self):
        from grancamino.core.constants import CONTEXT_LABELS, Language
        from grancamino.services.context import ContextAssembler

        assembler = ContextAssembler(max_context_chars=3000)
        text = assembler.assemble_files(
            [file_content("one.pdf", "x" * 2000), file_content("two.pdf", "y" * 2000)],
            Language.SPANISH,
        )

        assert "x" * 2000 in text
        assert "y" not in text.split("#### two.pdf")[1]
        assert CONTEXT_LABELS[Language.SPANISH]["omitted"] in text
        assert text.index("#### one.pdf") < text.index("#### two.pdf")


class TestRecordSections:
    """Tests for database row sections."""

    def test_sections_in_order_with_dates(self):
        from grancamino.core.constants import Language
        from grancamino.services.context import ContextAssembler
        from grancamino.services.records import RecordSnapshot

        snapshot = RecordSnapshot(
            hotels=[{
                "hotel_name": "Feel Viana", "city": "Viana do Castelo",
                "stages": {"stage_number": 1, "date": "2025-02-26"},
            }],
            stages=[{
                "stage_number": 1, "date": "2025-02-26", "start_location": "Viana",
                "finish_location": "Tui", "distance_km": 160,
            }],
            incidents=[{"description": "Carretera cortada", "stages": {"stage_number": 2}}],
            documents=[{"name": "Roadbook", "url": "https://example.com/roadbook.pdf"}],
        )
        text = ContextAssembler().assemble_records(snapshot, Language.SPANISH)

        assert "- Etapa 1 (26 feb): Feel Viana, Viana do Castelo" in text
        assert "- Etapa 1 (26 feb): Viana → Tui (160km)" in text
        assert "- Etapa 2: Carretera cortada" in text
        assert "- Roadbook: https://example.com/roadbook.pdf" in text
        assert text.index("HOTELES") < text.index("ETAPAS") < text.index("INCIDENCIAS") < text.index("DOCUMENTOS")

    def test_unavailable_and_empty_sections(self):
        from grancamino.core.constants import Language
        from grancamino.services.context import ContextAssembler
        from grancamino.services.records import RecordSnapshot

        text = ContextAssembler().assemble_records(
            RecordSnapshot(hotels=[], stages=None, incidents=[], documents=[]), Language.GALICIAN
        )

        assert "HOTEIS" not in text
        assert "ETAPAS" in text
        assert "(datos non dispoñibles)" in text

    def test_full_block_puts_records_before_files(self):
        from grancamino.core.constants import Language
        from grancamino.services.context import ContextAssembler
        from grancamino.services.records import RecordSnapshot

        text = ContextAssembler().assemble(
            RecordSnapshot(hotels=[], stages=[], incidents=[], documents=[{"name": "Guía", "url": "u"}]),
            [file_content("plan.pdf", "contenido")],
            Language.ENGLISH,
        )

        assert text.startswith("\n## O GRAN CAMIÑO 2025 DATA:")
        assert text.index("AVAILABLE DOCUMENTS") < text.index("FILES") < text.index("contenido")


class TestDateFormat:
    """Tests for stage date rendering."""

    def test_iso_date(self):
        from grancamino.services.context import format_stage_date

        assert format_stage_date("2025-02-26") == "26 feb"
        assert format_stage_date("2025-03-01T00:00:00Z") == "01 mar"

    def test_unparseable_date_passes_through(self):
        from grancamino.services.context import format_stage_date

        assert format_stage_date("pendiente") == "pendiente"
        assert format_stage_date(None) == ""
