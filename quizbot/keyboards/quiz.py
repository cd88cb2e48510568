from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder


def categories_kb(categories: list[tuple[int, str]]) -> InlineKeyboardMarkup:
    """
    categories = [(category_id, name), ...]
    """
    kb = InlineKeyboardBuilder()
    for category_id, name in categories:
        kb.add(InlineKeyboardButton(text=name, callback_data=f"play:{category_id}"))
    kb.adjust(2)
    return kb.as_markup()


def session_answer_kb(*, session_id: int, question_id: int, options: list[str]) -> InlineKeyboardMarkup:
    # option index instead of text: callback_data is capped at 64 bytes
    kb = InlineKeyboardBuilder()
    for idx, text in enumerate(options):
        kb.add(InlineKeyboardButton(text=text, callback_data=f"ans:{session_id}:{question_id}:{idx}"))
    kb.add(InlineKeyboardButton(text="✖ Quit", callback_data=f"quit:{session_id}"))
    kb.adjust(1)
    return kb.as_markup()


def daily_answer_kb(*, attempt_id: int, position: int, options: list[str]) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for idx, text in enumerate(options):
        kb.add(InlineKeyboardButton(text=text, callback_data=f"dc:{attempt_id}:{position}:{idx}"))
    kb.adjust(1)
    return kb.as_markup()
