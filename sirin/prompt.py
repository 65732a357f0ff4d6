"""Prompt construction for conversational replies."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_PERSONA_NAME = "Sirin"
DEFAULT_VOICE = "natural, polite, professional"
DEFAULT_COMPLIANCE = "Follow the user's request step by step."

_LANGUAGE_OVERRIDE = (
    "- Reply in Traditional Chinese only.\n"
    "- Use Traditional Chinese characters, not Simplified Chinese.\n"
)

_DIRECT_MODE_CONSTRAINTS = (
    "- The user asked for a direct answer: provide concrete steps immediately.\n"
    "- Do not include external links unless the user explicitly asks for links.\n"
)


@dataclass(frozen=True)
class PersonaStyle:
    """The parts of a persona that shape how replies are worded."""

    name: str = DEFAULT_PERSONA_NAME
    voice: str = DEFAULT_VOICE
    compliance_line: str = DEFAULT_COMPLIANCE
    ack_prefix: str = ""


def _block(header: str, value: str | None) -> str:
    return "" if value is None else f"\n{header}{value}"


def _constraints(persona_name: str) -> str:
    lines = (
        "- Keep response concise, but allow 3-6 sentences or a short bullet list "
        "when explaining code.",
        "- Be polite and human-like.",
        "- Reply in the same language as the user's message.",
        "- Always prioritise the latest user message over earlier chat history.",
        "- Use recent conversation context only when it is still relevant to the "
        "latest user message.",
        f"- If the user asks who you are, answer clearly that you are {persona_name}, "
        "the local AI assistant for this project.",
        "- If the user asks whether you can inspect this app's code, answer yes: you "
        "can read and analyze the local project codebase and relevant files.",
        "- For local code questions, first synthesise the concrete evidence from the "
        "provided files/modules, then answer.",
        "- When project code context includes `Analysis focus`, `Grounded local "
        "evidence`, `File:`, or `Excerpt:`, explicitly cite the relevant file path "
        "and answer from that local content instead of giving a generic reply.",
        "- If the available local code context is insufficient, say which file you "
        "inspected and what is still missing.",
        "- Never mention internal tool tags or hidden reasoning such as [SEARCH], "
        "[MEMORY], or [CODE].",
        "- Do not self-introduce unless the user asks who you are.",
        "- Avoid sounding like a system prompt or policy statement.",
    )
    return "".join(f"{line}\n" for line in lines)


def build_ai_reply_prompt(
    persona: PersonaStyle | None,
    user_text: str,
    execution_result: str | None = None,
    search_context: str | None = None,
    context_block: str | None = None,
    memory_context: str | None = None,
    code_context: str | None = None,
    direct_answer_request: bool = False,
    force_traditional_chinese: bool = False,
) -> str:
    """Build the prompt asking the model to reply to the latest user message."""
    if persona is None:
        persona_name, voice, compliance = (
            DEFAULT_PERSONA_NAME,
            DEFAULT_VOICE,
            DEFAULT_COMPLIANCE,
        )
    else:
        persona_name, voice, compliance = (
            persona.name,
            persona.voice,
            persona.compliance_line,
        )

    context = "".join(
        (
            _block("Execution result from internal action layer: ", execution_result),
            _block(
                "Web search results (use as reference, do not quote verbatim):\n",
                search_context,
            ),
            _block("Recent conversation history:\n", context_block),
            _block(
                "Past research findings (reference only, summarise if relevant):\n",
                memory_context,
            ),
            _block(
                "Project codebase context (use when the user asks about this app "
                "or its implementation):\n",
                code_context,
            ),
        )
    )

    language_override = _LANGUAGE_OVERRIDE if force_traditional_chinese else ""
    direct_mode = _DIRECT_MODE_CONSTRAINTS if direct_answer_request else ""

    return (
        f"You are {persona_name}.\n"
        f"Use this persona style: {voice}.\n"
        f"Core rule: {compliance}\n"
        "Task: Reply to the latest user message naturally and helpfully.\n"
        "Constraints:\n"
        f"{_constraints(persona_name)}"
        f"{language_override}\n"
        f"{direct_mode}\n"
        "- If an internal action already ran, include a short result summary.\n"
        "\n"
        f"User message: {user_text}\n"
        f"{context}\n"
        "\n"
        "Return only the final reply text."
    )