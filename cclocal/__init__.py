"""claude-code-local — run the Claude Code CLI against a local Ollama model."""

__version__ = "0.1.0"
