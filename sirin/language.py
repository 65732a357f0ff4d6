"""Language heuristics: CJK detection, mixed-language checks and intent cues."""

from __future__ import annotations

_CJK_RANGES = (
    ("\u4e00", "\u9fff"),
    ("\u3400", "\u4dbf"),
    ("\uf900", "\ufaff"),
)

_DIRECT_ANSWER_CUES = (
    "直接跟我說",
    "直接說",
    "直接講",
    "不要貼連結",
    "別貼連結",
    "不用連結",
    "just tell me",
    "no links",
)

_IDENTITY_CUES = (
    "你是誰",
    "你是谁",
    "你叫什麼",
    "你叫什么",
    "你的身份",
    "who are you",
    "what are you",
)

_SEEING_CUES = (
    "你能看到",
    "你可以看到",
    "能看到",
    "可以看到",
    "看得到",
    "看不到",
    "能看",
    "能讀",
    "能不能看",
    "看到什麼",
    "看得到什麼",
    "can you see",
    "can you read",
    "do you see",
)

_CODE_CUES = (
    "程式碼",
    "代码",
    "代碼",
    "當前代碼",
    "目前代碼",
    "檔案",
    "文件",
    "源码",
    "源碼",
    "source code",
    "the code",
    "codebase",
    "專案",
    "项目",
    "項目",
    "project files",
    "this project",
)

_DIRECT_CODE_CUES = (
    "看程式碼",
    "看代碼",
    "讀程式碼",
    "讀代碼",
    "看不到代碼",
    "證明你看得到",
    "這是啥項目",
    "這是什麼項目",
    "這個專案是什麼",
)

_SHORT_REPLY = "收到，我在這裡。你想先從哪一點開始？"
_LONG_REPLY = "收到，我理解你的需求了；我先幫你整理重點，接著給你可執行的下一步。"


def _is_cjk(ch: str) -> bool:
    return any(low <= ch <= high for low, high in _CJK_RANGES)


def _is_ascii_letter(ch: str) -> bool:
    return "a" <= ch <= "z" or "A" <= ch <= "Z"


def _contains_any(text: str, needles: tuple[str, ...]) -> bool:
    return any(needle in text for needle in needles)


def contains_cjk(text: str) -> bool:
    """Return True if the text holds at least one CJK ideograph."""
    return any(_is_cjk(ch) for ch in text)


def is_mixed_language_reply(text: str) -> bool:
    """Return True when enough Latin letters are mixed into CJK text to hurt readability."""
    cjk_count = sum(1 for ch in text if _is_cjk(ch))
    latin_count = sum(1 for ch in text if not _is_cjk(ch) and _is_ascii_letter(ch))

    if cjk_count == 0 or latin_count == 0:
        return False

    latin_ratio = latin_count / (cjk_count + latin_count)
    return latin_count >= 8 and latin_ratio > 0.35


def is_direct_answer_request(text: str) -> bool:
    """Return True when the user asks for a direct answer without links."""
    return _contains_any(text.strip().lower(), _DIRECT_ANSWER_CUES)


def is_identity_question(text: str) -> bool:
    """Return True when the user asks who the assistant is."""
    return _contains_any(text.strip().lower(), _IDENTITY_CUES)


def is_code_access_question(text: str) -> bool:
    """Return True when the user asks whether the assistant can see the code."""
    normalized = text.strip().lower()
    asks_about_seeing = _contains_any(normalized, _SEEING_CUES)
    mentions_code = _contains_any(normalized, _CODE_CUES)
    return (asks_about_seeing and mentions_code) or _contains_any(
        normalized, _DIRECT_CODE_CUES
    )


def chinese_fallback_reply(user_text: str, execution_result: str | None = None) -> str:
    """Build a canned Traditional Chinese reply, appending any execution result."""
    short = len(user_text.strip().encode("utf-8")) <= 12
    base = _SHORT_REPLY if short else _LONG_REPLY
    if execution_result is not None:
        base += f"\n{execution_result}"
    return base