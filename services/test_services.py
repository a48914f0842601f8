"""Tests for the service layer against a temporary SQLite store."""

from datetime import datetime

import numpy as np
import pytest

from conftest import FakeProcessor, SOLUTION_TEXT, decode, make_page
from database.models import STATUS_ACTIVE, STATUS_MASTERED
from pipeline.ai_processor import AIGatewayError
from pipeline.image_manager import UploadValidationError
from pipeline.scan import ImageDecodeError
from services.ai_service import (
    AIService,
    ImageUnavailableError,
    FORMAT_INSTRUCTION,
    DEFAULT_SOLVE_PROMPT,
    parse_solution,
)
from services.catalog_service import CatalogService, DuplicateEntryError
from services.question_service import (
    QuestionService,
    QuestionFilter,
    QuestionMetadata,
    UploadedImage,
)
from services.worksheet_service import (
    WorksheetService,
    UnknownQuestionsError,
    default_title,
)


def upload(data=None, content_type="image/png", filename="q.png"):
    return UploadedImage(filename=filename, content_type=content_type, data=data or make_page())


@pytest.fixture
def question_service(session, images, scanner):
    return QuestionService(session, images, scanner)


@pytest.fixture
def worksheet_service(session):
    return WorksheetService(session)


@pytest.fixture
def catalog_service(session):
    return CatalogService(session)


async def add_questions(service, count, lesson="Mathematics", **metadata):
    return await service.create_questions(
        [upload() for _ in range(count)],
        QuestionMetadata(lesson=lesson, **metadata),
    )


class TestQuestionService:
    """Test question storage and listing."""

    @pytest.mark.asyncio
    async def test_create_stores_processed_image(self, question_service, images):
        questions = await add_questions(
            question_service, 1, subject="Equations", source="Book A", page_number=12,
        )

        question = questions[0]
        assert question.status == STATUS_ACTIVE
        assert question.subject == "Equations"
        assert question.page_number == 12
        assert question.has_analysis is False
        assert question.file_url == f"/api/uploads/{question.file_id}.webp"

        pixels = decode(images.read(f"{question.file_id}.webp"))
        assert set(np.unique(pixels).tolist()) <= {0, 255}

    @pytest.mark.asyncio
    async def test_decode_failure_leaves_nothing(self, question_service, images):
        uploads = [upload(), upload(data=b"plain text")]

        with pytest.raises(ImageDecodeError):
            await question_service.create_questions(uploads, QuestionMetadata(lesson="Physics"))

        assert list(images.upload_dir.iterdir()) == []
        ids, total = await question_service.list_ids(QuestionFilter())
        assert total == 0

    @pytest.mark.asyncio
    async def test_rejects_non_images(self, question_service):
        with pytest.raises(UploadValidationError):
            await question_service.create_questions(
                [upload(content_type="application/pdf")],
                QuestionMetadata(lesson="Physics"),
            )

    @pytest.mark.asyncio
    async def test_cursor_pagination(self, question_service):
        created = await add_questions(question_service, 5)

        first = await question_service.list_questions(QuestionFilter(), limit=3)
        assert len(first.questions) == 3
        assert first.has_more is True
        assert first.next_cursor == first.questions[-1].id

        second = await question_service.list_questions(
            QuestionFilter(), cursor=first.next_cursor, limit=3
        )
        assert len(second.questions) == 2
        assert second.has_more is False
        assert second.next_cursor is None

        seen = [q.id for q in first.questions + second.questions]
        assert sorted(seen) == sorted(q.id for q in created)

    @pytest.mark.asyncio
    async def test_newest_first(self, question_service):
        await add_questions(question_service, 1, lesson="Physics")
        await add_questions(question_service, 1, lesson="Chemistry")

        page = await question_service.list_questions(QuestionFilter())
        assert [q.lesson for q in page.questions] == ["Chemistry", "Physics"]

    @pytest.mark.asyncio
    async def test_filters(self, question_service):
        await add_questions(question_service, 2, lesson="Physics", source="Book A")
        await add_questions(question_service, 1, lesson="Chemistry")

        page = await question_service.list_questions(QuestionFilter(lesson="Physics"))
        assert len(page.questions) == 2

        page = await question_service.list_questions(QuestionFilter(source="Book A"))
        assert {q.lesson for q in page.questions} == {"Physics"}

    @pytest.mark.asyncio
    async def test_status_and_search(self, question_service):
        questions = await add_questions(question_service, 3, lesson="Biology")

        count = await question_service.bulk_update_status(
            [questions[0].id, "unknown-id"], STATUS_MASTERED
        )
        assert count == 1

        active = await question_service.list_questions(QuestionFilter())
        assert len(active.questions) == 2

        mastered = await question_service.list_questions(QuestionFilter(status=STATUS_MASTERED))
        assert [q.id for q in mastered.questions] == [questions[0].id]

        # Search spans every status
        found = await question_service.list_questions(QuestionFilter(search="bio"))
        assert len(found.questions) == 3

    @pytest.mark.asyncio
    async def test_random_ids(self, question_service):
        await add_questions(question_service, 4)

        ids, total = await question_service.list_ids(QuestionFilter(), random=True, count=2)
        assert len(ids) == 2
        assert total == 4

        ids, total = await question_service.list_ids(QuestionFilter())
        assert len(ids) == total == 4

    @pytest.mark.asyncio
    async def test_update_ignores_unknown_fields(self, question_service):
        question = (await add_questions(question_service, 1))[0]

        updated = await question_service.update_question(
            question.id, {"answer": "C", "file_url": "/elsewhere"}
        )
        assert updated.answer == "C"
        assert updated.file_url.startswith("/api/uploads/")

        assert await question_service.update_question("missing", {"answer": "A"}) is None

    @pytest.mark.asyncio
    async def test_delete_removes_file(self, question_service, images):
        question = (await add_questions(question_service, 1))[0]
        path = images.locate(question.file_id).path
        assert path.exists()

        assert await question_service.delete_question(question.id) is True
        assert not path.exists()
        assert await question_service.get_question(question.id) is None
        assert await question_service.delete_question(question.id) is False

    @pytest.mark.asyncio
    async def test_delete_without_file(self, question_service, images):
        """A missing image file does not block deleting the record."""
        question = (await add_questions(question_service, 1))[0]
        images.locate(question.file_id).path.unlink()

        assert await question_service.delete_question(question.id) is True

    @pytest.mark.asyncio
    async def test_get_filters(self, question_service):
        await add_questions(question_service, 1, lesson="Physics", subject="Optics", source="Book A")
        await add_questions(question_service, 1, lesson="Chemistry")

        filters = await question_service.get_filters()
        assert filters["lessons"] == ["Chemistry", "Physics"]
        assert filters["subjects"] == [{"subject": "Optics", "lesson": "Physics"}]
        assert filters["sources"] == ["Book A"]

    @pytest.mark.asyncio
    async def test_reprocess(self, question_service, images):
        questions = await add_questions(question_service, 2)

        result = await question_service.reprocess()
        assert result.total == 2
        assert result.processed == 2

        result = await question_service.reprocess([questions[0].id])
        assert result.total == 1

        assert await question_service.reprocess(["missing"]) is None


class TestWorksheetService:
    """Test worksheet assembly."""

    def test_default_title(self):
        assert default_title(datetime(2024, 3, 5)) == "Worksheet - 05.03.2024"

    @pytest.mark.asyncio
    async def test_keeps_given_order(self, question_service, worksheet_service):
        questions = await add_questions(question_service, 3)
        ids = [q.id for q in reversed(questions)]

        worksheet = await worksheet_service.create_worksheet(ids, name="Alice")

        assert worksheet.title.startswith("Worksheet - ")
        assert worksheet.name == "Alice"
        assert [link.question.id for link in worksheet.questions] == ids
        assert [link.order for link in worksheet.questions] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_rejects_empty_and_unknown(self, question_service, worksheet_service):
        question = (await add_questions(question_service, 1))[0]

        with pytest.raises(ValueError):
            await worksheet_service.create_worksheet([])

        with pytest.raises(UnknownQuestionsError) as exc:
            await worksheet_service.create_worksheet([question.id, "nope"])
        assert exc.value.missing == ["nope"]

    @pytest.mark.asyncio
    async def test_list_by_lesson_and_search(self, question_service, worksheet_service):
        physics = await add_questions(question_service, 1, lesson="Physics")
        chemistry = await add_questions(question_service, 1, lesson="Chemistry")
        await worksheet_service.create_worksheet([physics[0].id], title="Forces")
        await worksheet_service.create_worksheet([chemistry[0].id], title="Acids")

        by_lesson = await worksheet_service.list_worksheets(lesson="Physics")
        assert [w.title for w in by_lesson] == ["Forces"]

        by_title = await worksheet_service.list_worksheets(search="aci")
        assert [w.title for w in by_title] == ["Acids"]

        assert len(await worksheet_service.list_worksheets()) == 2

    @pytest.mark.asyncio
    async def test_rename_and_delete(self, question_service, worksheet_service):
        questions = await add_questions(question_service, 2)
        first = await worksheet_service.create_worksheet([questions[0].id])
        second = await worksheet_service.create_worksheet([questions[1].id])

        renamed = await worksheet_service.rename_worksheet(first.id, {"title": "Renamed", "id": "x"})
        assert renamed.title == "Renamed"
        assert renamed.id == first.id

        assert await worksheet_service.delete_worksheet(first.id) is True
        assert await worksheet_service.delete_worksheet(first.id) is False

        assert await worksheet_service.delete_worksheets([second.id, "missing"]) == 1

        # Questions outlive their worksheets
        assert await question_service.get_question(questions[1].id) is not None


class TestCatalogService:
    """Test lessons, subjects and books."""

    @pytest.mark.asyncio
    async def test_seeded_lessons(self, catalog_service):
        lessons = await catalog_service.list_lessons()
        names = [lesson.name for lesson in lessons]

        assert "Mathematics" in names
        assert names == sorted(names)
        math = next(lesson for lesson in lessons if lesson.name == "Mathematics")
        assert "Derivatives" in [s.name for s in math.subjects]

    @pytest.mark.asyncio
    async def test_duplicate_lesson(self, catalog_service):
        await catalog_service.create_lesson("Astronomy")

        with pytest.raises(DuplicateEntryError):
            await catalog_service.create_lesson("Astronomy")

    @pytest.mark.asyncio
    async def test_subjects(self, catalog_service):
        lesson = await catalog_service.create_lesson("Astronomy")

        subject = await catalog_service.create_subject("Stars", lesson.id)
        assert subject.lesson.name == "Astronomy"

        assert await catalog_service.create_subject("Stars", "missing") is None

        with pytest.raises(DuplicateEntryError):
            await catalog_service.create_subject("Stars", lesson.id)

    @pytest.mark.asyncio
    async def test_delete_lesson_removes_subjects(self, catalog_service):
        lesson = await catalog_service.create_lesson("Astronomy")
        await catalog_service.create_subject("Planets", lesson.id)

        assert await catalog_service.delete_lesson(lesson.id) is True

        subjects = await catalog_service.list_subjects()
        assert "Planets" not in [s.name for s in subjects]
        assert await catalog_service.delete_lesson(lesson.id) is False

    @pytest.mark.asyncio
    async def test_books(self, catalog_service):
        book = await catalog_service.create_book("Practice Tests")
        assert [b.name for b in await catalog_service.list_books()] == ["Practice Tests"]

        with pytest.raises(DuplicateEntryError):
            await catalog_service.create_book("Practice Tests")

        assert await catalog_service.delete_book(book.id) is True


class TestParseSolution:
    """Test extraction of metadata from a solve response."""

    def test_all_sections(self):
        topics, difficulty, summary = parse_solution(SOLUTION_TEXT, "Mathematics")
        assert topics == ["Quadratic Equations"]
        assert difficulty == "Hard"
        assert summary == "Find the roots of a quadratic."

    def test_fallbacks(self):
        topics, difficulty, summary = parse_solution("Just an answer.", "Physics")
        assert topics == ["Physics"]
        assert difficulty == "Medium"
        assert summary == ""


class TestAIService:
    """Test solving, caching and prompts with a fake model."""

    @pytest.fixture
    def ai_service(self, session, images, fake_processor):
        self.models = []

        def factory(api_key, model):
            self.models.append((api_key, model))
            return fake_processor

        return AIService(session, images, default_model="gemini-default", processor_factory=factory)

    @pytest.mark.asyncio
    async def test_solve_then_cached(self, question_service, ai_service, fake_processor):
        question = (await add_questions(question_service, 1, subject="Equations"))[0]

        analysis, cached = await ai_service.solve(question.id, "key-1")
        assert cached is False
        assert analysis.topics == ["Quadratic Equations"]
        assert analysis.difficulty == "Hard"
        assert analysis.subject == "Equations"
        assert analysis.solution == SOLUTION_TEXT
        assert self.models == [("key-1", "gemini-default")]

        prompt, image = fake_processor.calls[0]
        assert prompt == DEFAULT_SOLVE_PROMPT
        assert image["mime_type"] == "image/webp"

        again, cached = await ai_service.solve(question.id, "key-1", model="other")
        assert cached is True
        assert again.id == analysis.id
        assert len(fake_processor.calls) == 1

    @pytest.mark.asyncio
    async def test_solve_unknown_question(self, ai_service):
        assert await ai_service.solve("missing", "key") == (None, False)

    @pytest.mark.asyncio
    async def test_solve_missing_image(self, question_service, ai_service, images):
        question = (await add_questions(question_service, 1))[0]
        images.locate(question.file_id).path.unlink()

        with pytest.raises(ImageUnavailableError):
            await ai_service.solve(question.id, "key")

    @pytest.mark.asyncio
    async def test_gateway_error_not_cached(self, question_service, session, images):
        question = (await add_questions(question_service, 1))[0]
        failing = FakeProcessor(error=AIGatewayError("quota exceeded"))
        service = AIService(session, images, processor_factory=lambda key, model: failing)

        with pytest.raises(AIGatewayError):
            await service.solve(question.id, "key")

        assert (await question_service.get_question(question.id)).analysis is None

    @pytest.mark.asyncio
    async def test_custom_prompts(self, question_service, ai_service, fake_processor):
        await ai_service.upsert_prompt("Mathematics", "Lesson prompt")
        await ai_service.upsert_prompt("Mathematics", "Subject prompt", subject="Equations")
        plain = (await add_questions(question_service, 1))[0]
        equations = (await add_questions(question_service, 1, subject="Equations"))[0]

        await ai_service.solve(plain.id, "key")
        await ai_service.solve(equations.id, "key")

        assert fake_processor.calls[0][0] == "Lesson prompt" + FORMAT_INSTRUCTION
        assert fake_processor.calls[1][0] == "Subject prompt" + FORMAT_INSTRUCTION

    @pytest.mark.asyncio
    async def test_clear_analyses(self, question_service, ai_service, fake_processor, database, images):
        question = (await add_questions(question_service, 1))[0]
        await ai_service.solve(question.id, "key")

        assert await ai_service.clear_analyses([question.id, "missing"]) == 1

        # A later request solves again
        async with database.session_maker() as session:
            service = AIService(session, images, processor_factory=lambda key, model: fake_processor)
            _, cached = await service.solve(question.id, "key")

        assert cached is False
        assert len(fake_processor.calls) == 2

    @pytest.mark.asyncio
    async def test_study_actions(self, question_service, ai_service, fake_processor):
        question = (await add_questions(question_service, 1, lesson="Physics", subject="Optics"))[0]

        with pytest.raises(ValueError):
            await ai_service.study_recommendations([], "key")

        await ai_service.study_recommendations([question.id], "key")
        assert "Physics > Optics" in fake_processor.calls[-1]

        await ai_service.study_plan([question.id], "key")
        assert "6 hours" in fake_processor.calls[-1]
        assert "7 days" in fake_processor.calls[-1]

        await ai_service.study_plan([question.id], "key", hours_per_day=2, days=3, custom_prompt="Be brief")
        assert fake_processor.calls[-1].startswith("Be brief")
        assert "3 days" in fake_processor.calls[-1]

    @pytest.mark.asyncio
    async def test_prompt_store(self, ai_service):
        prompt, created = await ai_service.upsert_prompt("Physics", "First")
        assert created is True
        assert prompt.subject == "__default__"

        updated, created = await ai_service.upsert_prompt("Physics", "Second", subject="  ")
        assert created is False
        assert updated.id == prompt.id
        assert updated.prompt == "Second"

        assert [p.prompt for p in await ai_service.list_prompts()] == ["Second"]
        assert await ai_service.delete_prompt(prompt.id) is True
        assert await ai_service.delete_prompt(prompt.id) is False
