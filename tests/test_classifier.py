"""File classifier tests."""

import pytest


def kind_of(name, media_type=""):
    from grancamino.services.classifier import FileDescriptor, classify
    return classify(FileDescriptor(id="f", name=name, media_type=media_type))


class TestClassifier:
    """Tests for the ordered classification rules."""

    @pytest.mark.parametrize("media_type", [
        "application/octet-stream",
        "application/gpx+xml",
        "text/xml",
        "",
    ])
    def test_gpx_by_name(self, media_type):
        from grancamino.services.classifier import FileKind

        assert kind_of("route.gpx", media_type) == FileKind.TRACK_GPX

    def test_google_sheet_wins_over_xlsx_name(self):
        from grancamino.services.classifier import FileKind

        assert kind_of("hoteles.xlsx", "application/vnd.google-apps.spreadsheet") == FileKind.GOOGLE_SHEET

    @pytest.mark.parametrize("name,media_type,expected", [
        ("hoteles.xlsx", "", "spreadsheet"),
        ("old.xls", "application/octet-stream", "spreadsheet"),
        ("x", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "spreadsheet"),
        ("Notas", "application/vnd.google-apps.document", "document"),
        ("roadbook.docx", "", "word"),
        ("x", "application/vnd.openxmlformats-officedocument.wordprocessingml.document", "word"),
        ("Reglamento.PDF", "", "pdf"),
        ("x", "application/pdf", "pdf"),
        ("ETAPA_2.KML", "", "track-kml"),
        ("etapa2.kmz", "application/vnd.google-earth.kmz", "track-kml"),
        ("photo.jpg", "image/jpeg", "unknown"),
        ("", "", "unknown"),
    ])
    def test_rules(self, name, media_type, expected):
        assert kind_of(name, media_type).value == expected

    def test_names_are_case_insensitive(self):
        from grancamino.services.classifier import FileKind

        assert kind_of("Route.GPX") == FileKind.TRACK_GPX
        assert FileKind.TRACK_GPX.is_track
        assert not FileKind.PDF.is_track


class TestFileDescriptor:
    """Tests for Drive resource conversion."""

    def test_from_drive(self):
        from grancamino.services.classifier import FileDescriptor

        descriptor = FileDescriptor.from_drive({
            "id": "abc",
            "name": "etapa1.gpx",
            "mimeType": "application/gpx+xml",
            "size": "2048",
            "modifiedTime": "2025-02-20T10:00:00.000Z",
        })

        assert descriptor.size_bytes == 2048
        assert descriptor.last_modified.year == 2025
        assert descriptor.version_tag.startswith("2025-02-20T10:00:00")

    def test_missing_optional_fields(self):
        from grancamino.services.classifier import FileDescriptor

        descriptor = FileDescriptor.from_drive({"id": "abc", "name": "notes"})

        assert descriptor.size_bytes is None
        assert descriptor.last_modified is None
        assert descriptor.version_tag == "-"
