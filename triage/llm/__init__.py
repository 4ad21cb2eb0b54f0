"""LLM access for the collaborator adapters."""

from triage.llm.client import LLMClient, MockLLMClient, translate_error

__all__ = ["LLMClient", "MockLLMClient", "translate_error"]
