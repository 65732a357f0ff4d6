"""Chat-agent helpers: language heuristics, commands, prompts, web search and research tracking."""

__version__ = "0.1.0"