"""Core infrastructure: configuration, browser, LLM client and parsing."""
