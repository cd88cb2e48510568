from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

BTN_PLAY = "🧠 Play"
BTN_DAILY = "📅 Daily challenge"
BTN_STREAK = "🔥 Streak"
BTN_LEADERBOARD = "🏆 Leaderboard"
BTN_HISTORY = "📜 History"


def main_menu_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=BTN_PLAY), KeyboardButton(text=BTN_DAILY)],
            [KeyboardButton(text=BTN_STREAK), KeyboardButton(text=BTN_LEADERBOARD)],
            [KeyboardButton(text=BTN_HISTORY)],
        ],
        resize_keyboard=True,
        input_field_placeholder="Choose an action…",
        selective=False,
        one_time_keyboard=False,
    )
