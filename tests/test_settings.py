import pytest

from quizbot.config import settings as settings_module
from quizbot.config.settings import Settings

_KEYS = (
    "BOT_TOKEN",
    "DATABASE_URL",
    "TIMEZONE",
    "ENVIRONMENT",
    "QUIZ_QUESTION_COUNT",
    "DAILY_REWARD_POINTS",
    "LEADERBOARD_LIMIT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)
    # a developer's .env must not leak into these tests
    monkeypatch.setattr(settings_module, "load_dotenv", lambda *a, **kw: False)


def test_defaults(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "123:abc")

    s = Settings.load()

    assert s.bot_token == "123:abc"
    assert s.database_url == "sqlite+aiosqlite:///./quizbot.db"
    assert s.timezone == "UTC"
    assert s.quiz_question_count == 10
    assert s.daily_reward_points == 100
    assert s.leaderboard_limit == 10
    assert s.is_dev is False


def test_overrides(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "123:abc")
    monkeypatch.setenv("TIMEZONE", "Europe/Berlin")
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("QUIZ_QUESTION_COUNT", "5")
    monkeypatch.setenv("LEADERBOARD_LIMIT", "500")

    s = Settings.load()

    assert s.timezone == "Europe/Berlin"
    assert s.is_dev is True
    assert s.quiz_question_count == 5
    assert s.leaderboard_limit == 100


def test_missing_token_fails_fast():
    with pytest.raises(RuntimeError, match="BOT_TOKEN"):
        Settings.load()


@pytest.mark.parametrize(
    "key, value",
    [
        ("QUIZ_QUESTION_COUNT", "ten"),
        ("DAILY_REWARD_POINTS", "0"),
        ("TIMEZONE", "Mars/Olympus"),
    ],
)
def test_invalid_values_fail_fast(monkeypatch, key, value):
    monkeypatch.setenv("BOT_TOKEN", "123:abc")
    monkeypatch.setenv(key, value)

    with pytest.raises(RuntimeError, match=key):
        Settings.load()
