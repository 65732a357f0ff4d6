# sirin

Building blocks for a desktop chat agent that answers messages, searches the web
and runs background research. This package is a library only. It has no command
to run and no graphical interface.

## Installation

```
pip install .
```

To install the test dependencies too:

```
pip install ".[test]"
```

## What is included

- `sirin.language`: heuristics for incoming text.
  - `contains_cjk` checks for CJK characters.
  - `is_mixed_language_reply` flags replies that mix languages.
  - `is_direct_answer_request`, `is_identity_question` and `is_code_access_question` detect common request types.
  - `chinese_fallback_reply` builds a canned reply.
- `sirin.config`: `TelegramConfig.from_env` reads `TG_*` settings from an environment mapping. It raises `ConfigError` when a required value is missing or malformed. `session_path` and `require_login` resolve the remaining settings.
- `sirin.commands`: small command helpers.
  - `message_preview` shortens a message for display.
  - `should_search` decides whether a message needs a web search.
  - `detect_research_intent` recognises research requests and returns a topic and an optional URL.
  - `extract_search_query` turns a message into a concise query. It uses any completion callable you pass in.
- `sirin.prompt`: `build_ai_reply_prompt` assembles the reply prompt. It takes an optional `PersonaStyle`.
- `sirin.search`: a web search that needs no API key.
  - `web_search` tries SearXNG first, when `SEARXNG_BASE_URL` is set. It then tries the DuckDuckGo instant-answer API, then DuckDuckGo HTML.
  - It raises `SearchError` when every provider fails.
  - Parsing helpers such as `parse_ddg_html` and `dedupe_results` can also be called on their own.
- `sirin.skills`: the catalogue of agent skills.
  - `list_skills` returns the catalogue.
  - `recommended_skills` ranks skills for a query.
  - `execute_skill` runs a skill and raises `UnknownSkillError` for an unknown id.
- `sirin.research_store`: `ResearchTask`, `ResearchStep` and `ResearchStatus`, plus `ResearchStore`. The store keeps tasks in a JSON-lines file and replaces a task in place when it is saved again.
- `sirin.research`: research pipeline helpers.
  - `fetch_page_text` and `extract_page_text` fetch a page and extract its text.
  - `parse_research_questions` reads the generated questions.
  - `extract_objectives` reads proposed objectives.
  - `store_pending_objectives` and `take_pending_objectives` hold a proposal until the user reviews it.

## Example

```python
from sirin.commands import detect_research_intent
from sirin.skills import recommended_skills
from sirin.research_store import ResearchStore, ResearchTask, ResearchStatus

topic, url = detect_research_intent("調研 https://example.com/")
ids = [skill.id for skill in recommended_skills("幫我看 src/main.rs")]

store = ResearchStore()
task = ResearchTask(id="r-1", topic=topic, url=url, status=ResearchStatus.RUNNING)
store.save(task)
print(store.get("r-1"))
```

## Running the tests

```
pytest
```