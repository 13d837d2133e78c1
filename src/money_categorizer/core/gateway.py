"""
LLM Gateway

Executes one text prompt and returns the full response as a single string.
Two backends:
- CommandGateway: pipes the prompt into a local command (ollama, llm, claude -p, ...)
- AnthropicGateway: calls the Claude API directly
"""
import shlex
import subprocess
from typing import Optional

import anthropic

from ..config import DEFAULT_MODEL, DEFAULT_PROMPT_CMD, Settings
from ..errors import ConfigError, GatewayError


def _decode(output: Optional[bytes]) -> str:
    # Invalid bytes become U+FFFD so a garbled response fails JSON parsing
    return (output or b'').decode('utf-8', errors='replace')


class Gateway:
    """Narrow interface: one prompt in, one response out"""

    def run(self, prompt: str) -> str:
        raise NotImplementedError


class CommandGateway(Gateway):
    """
    Runs a configured command with the prompt on stdin

    No timeout is applied; interrupt the process to cancel a slow model.
    """

    def __init__(self, command: str = DEFAULT_PROMPT_CMD):
        """
        Args:
            command: Shell-style command line, e.g. "ollama run llama3.2"
        """
        self.argv = shlex.split(command or '')
        if not self.argv:
            raise ConfigError("LLM prompt command is empty")
        self.command = command

    def run(self, prompt: str) -> str:
        try:
            completed = subprocess.run(
                self.argv,
                input=prompt.encode('utf-8'),
                capture_output=True,
                check=False,
            )
        except OSError as e:
            raise GatewayError(f"Failed to start LLM command '{self.command}': {e}") from e

        if completed.returncode != 0:
            stderr = _decode(completed.stderr).strip()
            detail = f": {stderr}" if stderr else ''
            raise GatewayError(
                f"LLM command '{self.command}' exited with status {completed.returncode}{detail}"
            )

        return _decode(completed.stdout).strip()


class AnthropicGateway(Gateway):
    """Same contract as CommandGateway, backed by the Anthropic API"""

    def __init__(self, api_key: Optional[str], model: str = DEFAULT_MODEL, max_tokens: int = 8000):
        if not api_key:
            raise ConfigError("ANTHROPIC_API_KEY is required for the anthropic backend")
        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    def run(self, prompt: str) -> str:
        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=0.0,  # Deterministic
                messages=[{
                    "role": "user",
                    "content": prompt
                }]
            )
        except anthropic.AnthropicError as e:
            raise GatewayError(f"Anthropic request failed: {e}") from e

        text = ''.join(
            block.text for block in message.content if getattr(block, 'type', None) == 'text'
        )
        return text.strip()


def build_gateway(settings: Settings) -> Gateway:
    """Pick the gateway backend named by LLM_BACKEND"""
    if settings.llm_backend == 'anthropic':
        return AnthropicGateway(settings.anthropic_api_key, model=settings.llm_model)
    return CommandGateway(settings.llm_prompt_cmd)
