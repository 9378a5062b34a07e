"""File decoder tests."""

import io

import pytest

from tests.fakes import GPX_ROUTE, FakeDriveProvider, make_descriptor


class TestByteDecoders:
    """Tests for spreadsheet, Word and PDF decoding."""

    def test_spreadsheet_all_sheets(self):
        import pandas as pd
        from grancamino.services.decoders import decode_spreadsheet

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            pd.DataFrame({"Etapa": [1, 2], "Hotel": ["Feel Viana", None]}).to_excel(writer, sheet_name="Hoteles", index=False)
            pd.DataFrame().to_excel(writer, sheet_name="Vacía", index=False)

        sheets = decode_spreadsheet(buffer.getvalue())

        assert list(sheets) == ["Hoteles"]
        assert sheets["Hoteles"] == [
            {"Etapa": "1", "Hotel": "Feel Viana"},
            {"Etapa": "2", "Hotel": ""},
        ]

    def test_word_paragraphs_and_tables(self):
        from docx import Document
        from grancamino.services.decoders import decode_word

        doc = Document()
        doc.add_paragraph("Roadbook etapa 2")
        doc.add_paragraph("")
        table = doc.add_table(rows=1, cols=2)
        table.rows[0].cells[0].text = "Km 45"
        table.rows[0].cells[1].text = "Avituallamiento"
        buffer = io.BytesIO()
        doc.save(buffer)

        assert decode_word(buffer.getvalue()) == "Roadbook etapa 2\nKm 45 | Avituallamiento"

    def test_pdf_without_text(self):
        from pypdf import PdfWriter
        from grancamino.services.decoders import decode_pdf

        writer = PdfWriter()
        writer.add_blank_page(width=200, height=200)
        buffer = io.BytesIO()
        writer.write(buffer)

        assert decode_pdf(buffer.getvalue()) == ""


class TestFileDecoder:
    """Tests for kind dispatch."""

    def test_track_kind_parses_track(self):
        from grancamino.services.classifier import FileKind
        from grancamino.services.decoders import FileDecoder

        drive = FakeDriveProvider(contents={"g1": GPX_ROUTE})
        track = FileDecoder(drive).decode(make_descriptor("g1", "etapa1.gpx"), FileKind.TRACK_GPX)

        assert len(track.points) == 2

    def test_strict_tracks_propagate(self):
        from grancamino.core.exceptions import MalformedTrackError
        from grancamino.services.classifier import FileKind
        from grancamino.services.decoders import FileDecoder

        gpx = b'<gpx><trk><trkseg><trkpt lat="x" lon="-8"/></trkseg></trk></gpx>'
        drive = FakeDriveProvider(contents={"g1": gpx})

        assert FileDecoder(drive).decode(make_descriptor("g1", "a.gpx"), FileKind.TRACK_GPX).points == ()
        with pytest.raises(MalformedTrackError):
            FileDecoder(drive, strict_tracks=True).decode(make_descriptor("g1", "a.gpx"), FileKind.TRACK_GPX)

    def test_unknown_kind_is_unsupported(self):
        from grancamino.core.exceptions import DecodeUnsupportedError
        from grancamino.services.classifier import FileKind
        from grancamino.services.decoders import FileDecoder

        with pytest.raises(DecodeUnsupportedError):
            FileDecoder(FakeDriveProvider()).decode(make_descriptor("x", "foto.jpg"), FileKind.UNKNOWN)
