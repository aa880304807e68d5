"""Text utilities – case folding, command/argument splitting, truncation."""

from __future__ import annotations

import unicodedata
from typing import NamedTuple

from aiogram.enums import ChatType
from aiogram.types import Message

_GROUP_CHAT_TYPES = (ChatType.GROUP, ChatType.SUPERGROUP)


def compatibility_case_fold(text: str) -> str:
    """Return the compatibility caseless form of *text*.

    NFD, fold, NFKD, fold, NFKD.  A single pass misses characters whose
    folded form decomposes into further foldable sequences.  Two names
    match iff their folded forms are equal (``"Ｈｅｌｌｏ"`` and ``"hello"``
    fold to the same thing).
    """
    folded = unicodedata.normalize("NFD", text).casefold()
    folded = unicodedata.normalize("NFKD", folded).casefold()
    return unicodedata.normalize("NFKD", folded)


def guild_id_of(message: Message) -> int | None:
    """Return the group chat id for *message*, or None outside a group."""
    if message.chat.type in _GROUP_CHAT_TYPES:
        return message.chat.id
    return None


class CommandText(NamedTuple):
    name: str
    mention: str | None  # bot username after "@", if addressed
    args: str


def split_command(text: str | None, prefix: str = "/") -> CommandText | None:
    """Split ``/name@Bot rest of text`` into name, mention and arguments.

    Returns None when *text* is not a command.
    """
    if not text or not text.startswith(prefix):
        return None
    parts = text[len(prefix):].split(maxsplit=1)
    if not parts:
        return None
    name, _, mention = parts[0].partition("@")
    if not name:
        return None
    return CommandText(name, mention or None, parts[1] if len(parts) > 1 else "")


def pop_quoted(args: str) -> tuple[str, str]:
    """Take the first argument off *args*, honouring double quotes.

    ``'"good morning" hi all'`` gives ``("good morning", "hi all")``.  An
    unterminated quote takes the rest of the string.
    """
    args = args.strip()
    if not args:
        return "", ""
    if args.startswith('"'):
        end = args.find('"', 1)
        if end == -1:
            return args[1:], ""
        return args[1:end], args[end + 1:].strip()
    parts = args.split(maxsplit=1)
    return parts[0], parts[1] if len(parts) > 1 else ""


def unquote(text: str) -> str:
    """Strip one pair of surrounding double quotes, if present."""
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] == '"':
        return text[1:-1]
    return text


def truncate(text: str, max_len: int, suffix: str = "...") -> str:
    """Truncate *text* to *max_len* characters, appending *suffix* if cut."""
    if len(text) <= max_len:
        return text
    return text[: max_len - len(suffix)] + suffix
