"""Unit tests for the interview, analysis and generation steps."""

import json

import pytest

from src.ai.model_client import ModelInvocationError
from src.ai.types import Malformed, Parsed
from src.ai.workflows import run_analysis, run_generation, run_interview
from tests.fakes import ScriptedModelClient


class TestInterview:
    @pytest.mark.asyncio
    async def test_needs_more_info(self):
        client = ScriptedModelClient()
        client.queue_json({"needsMoreInfo": True, "questions": ["Who are the users?", "Budget?"]})

        result = await run_interview(client, "online store", [])

        assert isinstance(result, Parsed)
        assert result.value.needs_more_info is True
        assert result.value.questions == ["Who are the users?", "Budget?"]

    @pytest.mark.asyncio
    async def test_history_is_sent(self):
        client = ScriptedModelClient()
        client.queue_json({"needsMoreInfo": False, "refinedDescription": "store with $10k budget"})
        history = [
            {"role": "agent", "message": "Budget?"},
            {"role": "user", "message": "budget is $10k"},
        ]

        await run_interview(client, "online store", history)

        conversation = client.calls[0]
        assert conversation[0].role == "system"
        assert "Interviewer: Budget?" in conversation[1].content
        assert "User: budget is $10k" in conversation[1].content

    @pytest.mark.asyncio
    async def test_questions_required_when_more_info_needed(self):
        client = ScriptedModelClient()
        client.queue_json({"needsMoreInfo": True, "questions": ["  "]})

        result = await run_interview(client, "online store", [])

        assert isinstance(result, Malformed)
        assert "questions" in result.reason

    @pytest.mark.asyncio
    async def test_refined_description_required_when_done(self):
        client = ScriptedModelClient()
        client.queue_json({"needsMoreInfo": False})

        result = await run_interview(client, "online store", [])

        assert isinstance(result, Malformed)

    @pytest.mark.asyncio
    async def test_invocation_error_propagates(self):
        client = ScriptedModelClient([ModelInvocationError("timeout")])

        with pytest.raises(ModelInvocationError):
            await run_interview(client, "online store", [])


class TestAnalysis:
    @pytest.mark.asyncio
    async def test_requirements(self):
        client = ScriptedModelClient(['```json\n["auth", " catalog ", ""]\n```'])

        result = await run_analysis(client, "Shop", "online store")

        assert result == Parsed(["auth", "catalog"])
        assert "Project Name: Shop" in client.calls[0][1].content

    @pytest.mark.asyncio
    async def test_empty_list_is_malformed(self):
        client = ScriptedModelClient(["[]"])

        result = await run_analysis(client, "Shop", "online store")

        assert isinstance(result, Malformed)


class TestGeneration:
    @pytest.mark.asyncio
    async def test_files(self):
        client = ScriptedModelClient([json.dumps([
            {"path": "app/main.py", "content": "app = None"},
            {"path": "README.md", "content": "# Shop"},
        ])])

        result = await run_generation(client, ["auth", "catalog"])

        assert isinstance(result, Parsed)
        assert [f.path for f in result.value] == ["app/main.py", "README.md"]
        assert "1. auth\n2. catalog" in client.calls[0][1].content

    @pytest.mark.asyncio
    async def test_duplicate_paths_are_malformed(self):
        client = ScriptedModelClient([json.dumps([
            {"path": "a.py", "content": ""},
            {"path": "a.py", "content": "x"},
        ])])

        result = await run_generation(client, ["auth"])

        assert isinstance(result, Malformed)
        assert "duplicate" in result.reason

    @pytest.mark.asyncio
    async def test_no_files_is_malformed(self):
        client = ScriptedModelClient(["[]"])

        assert isinstance(await run_generation(client, ["auth"]), Malformed)
