"""
Generate step: produce backend source files for approved requirements.
"""

from typing import List, Sequence

from src.ai.model_client import ModelClient
from src.ai.parsing import parse_json_reply
from src.ai.types import ChatMessage, GeneratedFile, Malformed, ParseResult, Parsed

SYSTEM_PROMPT = """You are a senior backend engineer. Write a small but complete
backend service that implements the numbered requirements you are given.

Rules:
- Use relative file paths (for example "src/main.py"); never absolute paths
  and never "..".
- Include a README with run instructions and any dependency manifest the
  code needs.
- Return ONLY a JSON array of objects with exactly two keys, "path" and
  "content". No commentary outside the JSON.
"""


def format_requirements(requirements: Sequence[str]) -> str:
    return "\n".join(f"{i}. {requirement}" for i, requirement in enumerate(requirements, start=1))


async def run_generation(
    client: ModelClient,
    requirements: Sequence[str],
) -> ParseResult[List[GeneratedFile]]:
    """One generation exchange. Raises ModelInvocationError if the call fails."""
    reply = await client.invoke([
        ChatMessage(role="system", content=SYSTEM_PROMPT),
        ChatMessage(
            role="user",
            content=f"Requirements:\n{format_requirements(requirements)}\n\nReturn JSON only.",
        ),
    ])
    result = parse_json_reply(reply, List[GeneratedFile])
    if isinstance(result, Malformed):
        return result
    if not result.value:
        return Malformed(raw_text=reply, reason="no files in reply")

    seen = set()
    for generated in result.value:
        if generated.path in seen:
            return Malformed(raw_text=reply, reason=f"duplicate path {generated.path}")
        seen.add(generated.path)
    return Parsed(result.value)
