"""Catalogue of agent skills, query-based recommendation and dispatch."""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

MAX_RECOMMENDED = 4


class UnknownSkillError(LookupError):
    """The requested skill is not in the catalogue."""


@dataclass(frozen=True)
class SkillDefinition:
    """A capability the agent can offer, with the tools that back it."""

    id: str
    name: str
    description: str
    requires_approval: bool
    category: str = ""
    backed_by_tools: tuple[str, ...] = ()
    example_prompts: tuple[str, ...] = ()


@dataclass(frozen=True)
class SkillExecutionResult:
    """Outcome of dispatching a skill."""

    skill_id: str
    emitted_event: str
    accepted: bool


# Each rule: the needles any of which must appear in the lower-cased query, and the score.
_SCORING_RULES: dict[str, tuple[tuple[str, ...], int]] = {
    "project_overview": (
        ("專案", "架構", "結構", "module", "模組", "怎麼運作", "overview"),
        10,
    ),
    "local_file_read": (
        ("src/", ".rs", ".toml", ".md", "檔案", "文件", "file"),
        12,
    ),
    "codebase_search": (
        (
            "哪裡",
            "在哪",
            "搜尋",
            "search",
            "symbol",
            "函式",
            "function",
            "模組",
            "src/",
            ".rs",
            ".toml",
        ),
        9,
    ),
    "memory_search": (("剛剛", "上面", "這些", "那些", "前面", "延續"), 9),
    "code_change_planning": (
        ("規劃", "计划", "plan", "重構", "重构", "優化", "优化", "先分析再改"),
        10,
    ),
    "symbol_trace": (
        ("呼叫", "调用", "trace", "影響", "影响", "哪裡被用", "在哪裡被用"),
        10,
    ),
    "grounded_fix": (
        ("bug", "修", "fix", "root cause", "問題", "优化", "優化"),
        11,
    ),
    "test_selector": (("測試", "测试", "test", "驗證", "验证", "check"), 9),
    "architecture_consistency_check": (
        ("架構", "架构", "architecture", "一致", "分層", "分层"),
        9,
    ),
    "web_search": (("google", "搜尋", "search", "網路", "最新", "查一下"), 8),
    "send_tg_reply": (("telegram", "回覆", "通知", "發送", "send"), 6),
}


def list_skills() -> list[SkillDefinition]:
    """Return every registered skill, in catalogue order."""
    return [
        SkillDefinition(
            id="project_overview",
            name="Project Overview",
            description="先查看幾個核心檔案，整理專案架構、主要模組與工作方式。",
            requires_approval=False,
            category="code-understanding",
            backed_by_tools=("project_overview", "local_file_read"),
            example_prompts=("這個專案大概是怎麼運作的？", "列出這個 repo 的核心模組"),
        ),
        SkillDefinition(
            id="local_file_read",
            name="Local File Read",
            description="讀取真實本地檔案內容，回覆檔案用途、片段與重點。",
            requires_approval=False,
            category="code-understanding",
            backed_by_tools=("local_file_read",),
            example_prompts=("幫我看 src/main.rs", "解釋 src/ui.rs"),
        ),
        SkillDefinition(
            id="codebase_search",
            name="Codebase Search",
            description="在本地程式碼索引中找出相關檔案、模組與符號，再交由 agent 組織答案。",
            requires_approval=False,
            category="code-understanding",
            backed_by_tools=("codebase_search",),
            example_prompts=("找出 chat flow 在哪裡", "哪個檔案負責 Telegram listener"),
        ),
        SkillDefinition(
            id="memory_search",
            name="Memory Recall",
            description="查詢近期對話、研究摘要與記憶內容，協助回答承接型問題。",
            requires_approval=False,
            category="context-retrieval",
            backed_by_tools=("memory_search",),
            example_prompts=("剛剛提到的那些檔案是做什麼的", "延續上個問題"),
        ),
        SkillDefinition(
            id="code_change_planning",
            name="Code Change Planning",
            description="在修改前先整理受影響檔案、預期改動步驟、風險與驗證方式。",
            requires_approval=False,
            category="code-optimization",
            backed_by_tools=("project_overview", "codebase_search", "memory_search"),
            example_prompts=("先分析再改", "幫我規劃這次重構", "這段要怎麼安全優化"),
        ),
        SkillDefinition(
            id="symbol_trace",
            name="Symbol Trace",
            description="追蹤函式、struct 或模組的呼叫鏈與影響範圍，避免改一處壞多處。",
            requires_approval=False,
            category="code-optimization",
            backed_by_tools=("codebase_search", "local_file_read"),
            example_prompts=("這個 function 在哪裡被呼叫", "改這個會影響哪些地方"),
        ),
        SkillDefinition(
            id="grounded_fix",
            name="Grounded Fix",
            description="修 bug 或優化前，先查相關檔案與上下文，再根據本地證據做最小修改。",
            requires_approval=False,
            category="code-optimization",
            backed_by_tools=("codebase_search", "local_file_read", "memory_search"),
            example_prompts=("幫我找 root cause 再修", "不要亂改，先看上下文"),
        ),
        SkillDefinition(
            id="test_selector",
            name="Targeted Test Selection",
            description="根據改動範圍挑出應該先跑的測試或檢查命令，提升本地迭代效率。",
            requires_approval=False,
            category="code-optimization",
            backed_by_tools=(),
            example_prompts=("改完幫我測一下", "只驗證聊天流程", "先跑相關測試"),
        ),
        SkillDefinition(
            id="architecture_consistency_check",
            name="Architecture Consistency Check",
            description="確認修改是否仍符合目前的 agent / ADK 分層與整體專案架構。",
            requires_approval=False,
            category="code-optimization",
            backed_by_tools=("project_overview", "codebase_search", "local_file_read"),
            example_prompts=("這樣改會不會破壞架構", "檢查這次重構是否一致"),
        ),
        SkillDefinition(
            id="web_search",
            name="Resilient Web Search",
            description="透過 SearXNG / DuckDuckGo fallback 搜尋外部資訊，不需額外 API key。",
            requires_approval=False,
            category="external-research",
            backed_by_tools=("web_search",),
            example_prompts=("查一下某個函式庫用法", "幫我搜尋 Gemma 4 模型資訊"),
        ),
        SkillDefinition(
            id="send_tg_reply",
            name="Send Telegram Reply",
            description="發出技能事件，交給 Telegram 模組送出回覆；屬於需要明確授權的動作。",
            requires_approval=True,
            category="external-action",
            backed_by_tools=(),
            example_prompts=("回覆 Telegram 訊息", "發一則通知"),
        ),
    ]


def score_skill_for_query(skill_id: str, query: str) -> int:
    """Score how relevant a skill is to a query; 0 means not relevant."""
    rule = _SCORING_RULES.get(skill_id)
    if rule is None:
        return 0
    needles, score = rule
    lower = query.lower()
    return score if any(needle in lower for needle in needles) else 0


def recommended_skills(query: str) -> list[SkillDefinition]:
    """Return up to four relevant skills, best score first, ties by id."""
    scored = [
        (score, skill)
        for skill in list_skills()
        if (score := score_skill_for_query(skill.id, query)) > 0
    ]
    scored.sort(key=lambda pair: (-pair[0], pair[1].id))
    return [skill for _, skill in scored[:MAX_RECOMMENDED]]


def ensure_registered(skill_id: str) -> None:
    """Raise UnknownSkillError unless the skill is in the catalogue."""
    if not any(skill.id == skill_id for skill in list_skills()):
        raise UnknownSkillError(f"Unknown skill: {skill_id}")


def execute_skill(skill_id: str, timestamp: str) -> SkillExecutionResult:
    """Dispatch a registered skill by emitting its event."""
    ensure_registered(skill_id)
    logger.info("Executing skill '%s' for task at %s", skill_id, timestamp)
    return SkillExecutionResult(
        skill_id=skill_id,
        emitted_event=f"skill:{skill_id}",
        accepted=True,
    )