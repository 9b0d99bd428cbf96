"""
Interview step: decide whether the description is clear enough to analyze,
and if not, which questions to ask the user.
"""

from typing import Dict, List, Sequence

from src.ai.model_client import ModelClient
from src.ai.parsing import parse_json_reply
from src.ai.types import ChatMessage, InterviewResult, Malformed, ParseResult

SYSTEM_PROMPT = """You are a senior requirements engineer interviewing a client about a backend they want built.

Read the project description and any conversation so far. Decide whether you
know enough to write functional requirements for the backend.

- If important details are missing (core entities, user roles, integrations,
  scale, auth), ask at most 3 short, concrete questions.
- If the description is clear enough, stop asking and write a refined,
  self-contained description that folds in every answer the user gave.

Return JSON only, in exactly this shape:
{"needsMoreInfo": true|false, "refinedDescription": "...", "questions": ["..."]}
"""


def format_history(history: Sequence[Dict[str, str]]) -> str:
    lines = []
    for entry in history:
        speaker = "Interviewer" if entry.get("role") == "agent" else "User"
        lines.append(f"{speaker}: {entry.get('message', '')}")
    return "\n".join(lines)


def build_conversation(description: str, history: Sequence[Dict[str, str]]) -> List[ChatMessage]:
    body = f"Project description: {description}"
    if history:
        body += f"\n\nConversation history:\n{format_history(history)}"
    body += "\n\nReturn JSON only."
    return [
        ChatMessage(role="system", content=SYSTEM_PROMPT),
        ChatMessage(role="user", content=body),
    ]


async def run_interview(
    client: ModelClient,
    description: str,
    history: Sequence[Dict[str, str]],
) -> ParseResult[InterviewResult]:
    """One interview exchange. Raises ModelInvocationError if the call fails."""
    reply = await client.invoke(build_conversation(description, history))
    result = parse_json_reply(reply, InterviewResult)
    if isinstance(result, Malformed):
        return result

    interview = result.value
    if interview.needs_more_info and not [q for q in interview.questions if q.strip()]:
        return Malformed(raw_text=reply, reason="needsMoreInfo without any questions")
    if not interview.needs_more_info and not interview.refined_description.strip():
        return Malformed(raw_text=reply, reason="empty refinedDescription")
    return result
