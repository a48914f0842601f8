"""Default lessons and subjects."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Lesson, Subject

logger = logging.getLogger(__name__)

DEFAULT_LESSONS = [
    {
        "name": "Mathematics",
        "subjects": [
            "Numbers", "Divisibility", "Rational Numbers", "Exponents and Roots",
            "Equations", "Functions", "Polynomials", "Logarithms", "Sequences",
            "Trigonometry", "Limits", "Derivatives", "Integrals", "Probability",
        ],
    },
    {
        "name": "Geometry",
        "subjects": [
            "Triangles", "Polygons", "Circles", "Solid Geometry",
            "Analytic Geometry", "Transformations",
        ],
    },
    {
        "name": "Physics",
        "subjects": [
            "Motion", "Forces", "Energy", "Momentum", "Electricity",
            "Magnetism", "Waves", "Optics", "Modern Physics",
        ],
    },
    {
        "name": "Chemistry",
        "subjects": [
            "Atomic Structure", "Periodic Table", "Chemical Bonds", "Mole Concept",
            "Reaction Rates", "Equilibrium", "Acids and Bases", "Organic Chemistry",
        ],
    },
    {
        "name": "Biology",
        "subjects": [
            "Cells", "Genetics", "Ecology", "Evolution", "Human Physiology", "Plants",
        ],
    },
    {
        "name": "Literature",
        "subjects": ["Grammar", "Paragraph", "Poetry", "Literary Periods"],
    },
    {
        "name": "History",
        "subjects": ["Ancient History", "Medieval History", "Modern History", "Contemporary History"],
    },
    {
        "name": "Geography",
        "subjects": ["Physical Geography", "Climate", "Population", "Economic Geography"],
    },
    {
        "name": "Philosophy",
        "subjects": ["Epistemology", "Ethics", "Logic", "Psychology", "Sociology"],
    },
]


async def seed_defaults(session: AsyncSession) -> int:
    """Insert default lessons and subjects when the lesson table is empty.

    Returns the number of lessons inserted (0 when lessons already exist).
    """
    count = await session.scalar(select(func.count()).select_from(Lesson))
    if count:
        return 0

    logger.info("Empty lesson table, inserting default lessons...")

    for lesson_data in DEFAULT_LESSONS:
        lesson = Lesson(name=lesson_data["name"])
        lesson.subjects = [Subject(name=name) for name in lesson_data["subjects"]]
        session.add(lesson)

    await session.commit()
    logger.info(f"Inserted {len(DEFAULT_LESSONS)} default lessons")
    return len(DEFAULT_LESSONS)
