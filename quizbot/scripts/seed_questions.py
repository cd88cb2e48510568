# quizbot/scripts/seed_questions.py
"""
Seeds a starter question bank. Categories that already exist are left alone,
so the script can be re-run safely.

    python -m quizbot.scripts.seed_questions
"""
from __future__ import annotations

import asyncio
import logging

from sqlalchemy import select

from quizbot.config import Settings
from quizbot.database.models import Category, Difficulty, Question
from quizbot.database.session import Database

log = logging.getLogger(__name__)

E, M, H = Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD

# (content, options, correct_answer, difficulty, explanation)
SEED: dict[str, tuple[str, list[tuple[str, list[str], str, Difficulty, str | None]]]] = {
    "Science": (
        "Physics, chemistry, biology and space",
        [
            ("What is the chemical symbol for gold?", ["Au", "Ag", "Gd", "Go"], "Au", E, "From the Latin 'aurum'."),
            ("Which planet is known as the Red Planet?", ["Venus", "Mars", "Jupiter", "Mercury"], "Mars", E, None),
            ("What gas do plants absorb from the air?", ["Oxygen", "Nitrogen", "Carbon dioxide", "Helium"], "Carbon dioxide", E, None),
            ("How many bones are in the adult human body?", ["186", "206", "226", "246"], "206", M, None),
            ("What is the speed of light in vacuum, roughly?", ["300,000 km/s", "150,000 km/s", "30,000 km/s", "3,000 km/s"], "300,000 km/s", M, None),
            ("Which particle has no electric charge?", ["Proton", "Electron", "Neutron", "Positron"], "Neutron", E, None),
            ("What is the most abundant gas in Earth's atmosphere?", ["Oxygen", "Nitrogen", "Argon", "Carbon dioxide"], "Nitrogen", M, "About 78% by volume."),
            ("What is the pH of pure water at 25°C?", ["5", "6", "7", "8"], "7", M, None),
            ("Which organelle is called the powerhouse of the cell?", ["Nucleus", "Ribosome", "Mitochondrion", "Golgi body"], "Mitochondrion", E, None),
            ("What is the half-life unit used for carbon-14 dating, approximately?", ["57 years", "570 years", "5,730 years", "57,300 years"], "5,730 years", H, None),
            ("Which element has atomic number 1?", ["Helium", "Hydrogen", "Lithium", "Carbon"], "Hydrogen", E, None),
            ("What is the SI unit of electrical resistance?", ["Volt", "Ampere", "Ohm", "Watt"], "Ohm", M, None),
        ],
    ),
    "History": (
        "From ancient empires to the modern age",
        [
            ("In which year did World War II end?", ["1943", "1944", "1945", "1946"], "1945", E, None),
            ("Who was the first President of the United States?", ["Thomas Jefferson", "George Washington", "John Adams", "Abraham Lincoln"], "George Washington", E, None),
            ("Which empire built Machu Picchu?", ["Aztec", "Maya", "Inca", "Olmec"], "Inca", M, None),
            ("In which year did the Berlin Wall fall?", ["1987", "1988", "1989", "1991"], "1989", E, None),
            ("Who was the first emperor of Rome?", ["Julius Caesar", "Augustus", "Nero", "Tiberius"], "Augustus", M, None),
            ("The Magna Carta was signed in which year?", ["1066", "1215", "1348", "1492"], "1215", M, None),
            ("Which city was the capital of the Byzantine Empire?", ["Rome", "Athens", "Constantinople", "Alexandria"], "Constantinople", E, None),
            ("Who wrote 'The Prince'?", ["Machiavelli", "Dante", "Erasmus", "Thomas More"], "Machiavelli", M, None),
            ("Which dynasty built most of the Great Wall seen today?", ["Han", "Tang", "Song", "Ming"], "Ming", H, None),
            ("The Treaty of Westphalia ended which war?", ["Hundred Years' War", "Thirty Years' War", "Seven Years' War", "War of the Roses"], "Thirty Years' War", H, None),
            ("Which ship sank on its maiden voyage in 1912?", ["Lusitania", "Titanic", "Britannic", "Olympic"], "Titanic", E, None),
            ("Who led the Soviet Union during most of World War II?", ["Lenin", "Stalin", "Khrushchev", "Trotsky"], "Stalin", E, None),
        ],
    ),
    "Geography": (
        "Countries, capitals and natural wonders",
        [
            ("What is the capital of Australia?", ["Sydney", "Melbourne", "Canberra", "Perth"], "Canberra", E, None),
            ("Which is the longest river in the world?", ["Amazon", "Nile", "Yangtze", "Mississippi"], "Nile", M, "The Amazon is a close contender by some measurements."),
            ("Which country has the most natural lakes?", ["Russia", "Canada", "USA", "Finland"], "Canada", H, None),
            ("Mount Everest lies on the border of Nepal and which country?", ["India", "China", "Bhutan", "Pakistan"], "China", E, None),
            ("What is the smallest country in the world?", ["Monaco", "San Marino", "Vatican City", "Liechtenstein"], "Vatican City", E, None),
            ("Which desert is the largest hot desert?", ["Gobi", "Kalahari", "Sahara", "Arabian"], "Sahara", E, None),
            ("What is the capital of Canada?", ["Toronto", "Ottawa", "Montreal", "Vancouver"], "Ottawa", E, None),
            ("Which ocean is the deepest?", ["Atlantic", "Indian", "Arctic", "Pacific"], "Pacific", M, None),
            ("Lake Baikal is located in which country?", ["Mongolia", "Kazakhstan", "Russia", "China"], "Russia", M, None),
            ("Which African country was formerly called Abyssinia?", ["Eritrea", "Ethiopia", "Somalia", "Sudan"], "Ethiopia", H, None),
            ("How many US states are there?", ["48", "49", "50", "52"], "50", E, None),
            ("Which strait separates Europe and Africa?", ["Bosporus", "Gibraltar", "Hormuz", "Malacca"], "Gibraltar", M, None),
        ],
    ),
}


async def seed(db: Database) -> int:
    created = 0
    async with db.session() as session:
        for name, (description, rows) in SEED.items():
            existing = await session.scalar(select(Category).where(Category.name == name))
            if existing is not None:
                log.info("Category %r already exists, skipping", name)
                continue

            category = Category(name=name, description=description)
            session.add(category)
            await session.flush()  # category.id available now

            session.add_all(
                [
                    Question(
                        category_id=category.id,
                        content=content,
                        options=options,
                        correct_answer=correct,
                        difficulty=difficulty,
                        explanation=explanation,
                    )
                    for content, options, correct, difficulty, explanation in rows
                ]
            )
            created += len(rows)
            log.info("Seeded category %r with %s questions", name, len(rows))

        await session.commit()
    return created


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    settings = Settings.load()

    db = Database(settings.database_url)
    await db.init_models()
    try:
        created = await seed(db)
    finally:
        await db.close()
    log.info("Done: %s questions created", created)


if __name__ == "__main__":
    asyncio.run(main())
