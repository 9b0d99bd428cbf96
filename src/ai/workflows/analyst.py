"""
Analyze step: break a project description into functional requirements.
"""

from typing import List

from src.ai.model_client import ModelClient
from src.ai.parsing import parse_json_reply
from src.ai.types import ChatMessage, Malformed, ParseResult, Parsed

SYSTEM_PROMPT = """You are an expert Business Analyst and Product Owner.
Analyze the project idea and break it down into high-level functional
requirements for its backend.

Return ONLY a JSON array of strings, one requirement per string, most
important first.
Example: ["User authentication", "Product catalog with search", "Order checkout"]
"""


async def run_analysis(
    client: ModelClient,
    project_name: str,
    description: str,
) -> ParseResult[List[str]]:
    """One analysis exchange. Raises ModelInvocationError if the call fails."""
    reply = await client.invoke([
        ChatMessage(role="system", content=SYSTEM_PROMPT),
        ChatMessage(
            role="user",
            content=f"Project Name: {project_name}\nDescription: {description}\n\nGenerate requirements:",
        ),
    ])
    result = parse_json_reply(reply, List[str])
    if isinstance(result, Malformed):
        return result

    requirements = [item.strip() for item in result.value if item.strip()]
    if not requirements:
        return Malformed(raw_text=reply, reason="no requirements in reply")
    return Parsed(requirements)
