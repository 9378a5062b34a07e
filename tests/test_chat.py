"""Chat service tests (all providers faked)."""

import asyncio

import pytest

from tests.fakes import GPX_ROUTE, FakeDriveProvider, FakeLLM, FakeRecordProvider, make_descriptor


def make_chat(records=None, drive=None, llm=None, llm_timeout=2.0):
    from grancamino.services.cache import ContentCache
    from grancamino.services.chat import ChatService
    from grancamino.services.context import ContextAssembler
    from grancamino.services.files import FileContentService

    drive = drive or FakeDriveProvider()
    files = FileContentService(drive, ContentCache(), folder_id="folder-1")
    return ChatService(
        records or FakeRecordProvider(),
        files,
        ContextAssembler(),
        llm or FakeLLM(),
        llm_timeout=llm_timeout,
    )


class TestTeamResolution:
    """Tests for team lookup."""

    @pytest.mark.asyncio(loop_scope="function")
    async def test_public_skips_lookup(self):
        records = FakeRecordProvider(fail={"teams"})

        assert await make_chat(records).resolve_team("public") is None
        assert await make_chat(records).resolve_team("") is None

    @pytest.mark.asyncio(loop_scope="function")
    async def test_unknown_team_raises(self):
        from grancamino.core.exceptions import TeamNotFoundError

        with pytest.raises(TeamNotFoundError) as exc_info:
            await make_chat().resolve_team("XXX")

        assert exc_info.value.team == "XXX"

    @pytest.mark.asyncio(loop_scope="function")
    async def test_provider_down_falls_back_to_public(self):
        records = FakeRecordProvider(teams={"MOV": 7}, fail={"teams"})

        assert await make_chat(records).resolve_team("MOV") is None


class TestAnswer:
    """Tests for the full request flow."""

    @pytest.mark.asyncio(loop_scope="function")
    async def test_context_contains_records_and_files(self):
        from grancamino.core.constants import Language

        records = FakeRecordProvider(
            teams={"MOV": 7},
            hotels={7: [{"hotel_name": "Feel Viana", "city": "Viana", "stages": {"stage_number": 1, "date": "2025-02-26"}}]},
            stages=[{"stage_number": 1, "date": "2025-02-26", "start_location": "Viana",
                     "finish_location": "Tui", "distance_km": 160}],
        )
        drive = FakeDriveProvider(
            files=[make_descriptor("g1", "etapa1.gpx"), make_descriptor("x", "rota.gpx")],
            contents={"g1": GPX_ROUTE, "x": b"<gpx"},
        )
        llm = FakeLLM()

        result = await make_chat(records, drive, llm).answer("¿Hotel?", "MOV", [], Language.SPANISH)

        assert result.text == "<p>Respuesta</p>"
        system = llm.calls[0]["system"]
        assert "NO INVENTES DATOS" in system
        assert "Feel Viana, Viana" in system
        assert '"distance_km": 8.1' in system
        assert "#### rota.gpx (track-gpx)\n(archivo no disponible: malformed track)" in system

    @pytest.mark.asyncio(loop_scope="function")
    async def test_english_prompt(self):
        from grancamino.core.constants import Language

        llm = FakeLLM()
        await make_chat(llm=llm).answer("hi", "public", [], Language.ENGLISH)

        assert "ALWAYS RESPOND IN ENGLISH" in llm.calls[0]["system"]

    @pytest.mark.asyncio(loop_scope="function")
    async def test_all_sources_down_still_answers(self):
        from grancamino.core.constants import Language

        records = FakeRecordProvider(fail={"teams", "stages", "incidents", "documents"})
        drive = FakeDriveProvider(listing_error=True)
        llm = FakeLLM()

        result = await make_chat(records, drive, llm).answer("hola", "public", [], Language.SPANISH)

        assert result.text
        assert "(datos no disponibles)" in llm.calls[0]["system"]

    @pytest.mark.asyncio(loop_scope="function")
    async def test_llm_timeout(self):
        from grancamino.core.constants import Language

        chat = make_chat(llm=FakeLLM(delay=1.0), llm_timeout=0.1)

        with pytest.raises(asyncio.TimeoutError):
            await chat.answer("hola", "public", [], Language.SPANISH)

    @pytest.mark.asyncio(loop_scope="function")
    async def test_generation_error_propagates(self):
        from grancamino.core.constants import Language
        from grancamino.core.exceptions import GenerationError

        chat = make_chat(llm=FakeLLM(error=GenerationError("overloaded")))

        with pytest.raises(GenerationError):
            await chat.answer("hola", "public", [], Language.SPANISH)


class TestListSources:
    """Tests for the file picker listing."""

    @pytest.mark.asyncio(loop_scope="function")
    async def test_drive_and_documents(self):
        records = FakeRecordProvider(documents=[{"id": 3, "name": "Roadbook", "doc_type": "pdf", "url": "u"}])
        drive = FakeDriveProvider(files=[make_descriptor("g1", "etapa1.gpx")])

        sources = await make_chat(records, drive).list_sources()

        assert sources[0] == {"id": "g1", "name": "etapa1.gpx", "type": "track-gpx", "source": "drive"}
        assert sources[1]["source"] == "documents"
        assert sources[1]["id"] == "3"

    @pytest.mark.asyncio(loop_scope="function")
    async def test_documents_down(self):
        records = FakeRecordProvider(fail={"documents"})
        drive = FakeDriveProvider(files=[make_descriptor("g1", "etapa1.gpx")])

        sources = await make_chat(records, drive).list_sources()

        assert [s["id"] for s in sources] == ["g1"]
