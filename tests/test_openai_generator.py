"""Tests for the OpenAI image generator (client mocked)."""

import base64
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from openai import OpenAIError

from goodchoice.generation.base import GenerationError, InputImage
from goodchoice.generation.openai_generator import OpenAIImageGenerator

from tests.helpers import PNG_BYTES


def _chat_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _image_response(b64):
    return SimpleNamespace(data=[SimpleNamespace(b64_json=b64)])


def _client(content='{"description": "A museum plinth holding a glass of water"}', b64=None):
    b64 = base64.b64encode(PNG_BYTES).decode() if b64 is None else b64
    return SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=AsyncMock(return_value=_chat_response(content)))),
        images=SimpleNamespace(
            generate=AsyncMock(return_value=_image_response(b64)),
            edit=AsyncMock(return_value=_image_response(b64)),
        ),
    )


def _generator(client):
    return OpenAIImageGenerator(client, text_model="text-m", image_model="image-m")


class TestGenerate:
    @pytest.mark.asyncio
    async def test_refines_then_generates(self):
        client = _client()

        result = await _generator(client).generate("Drinking a full glass of water")

        assert result.image_bytes == PNG_BYTES
        assert result.refined_prompt == "A museum plinth holding a glass of water"
        assert result.mime_type == "image/png"

        chat_kwargs = client.chat.completions.create.await_args.kwargs
        assert chat_kwargs["model"] == "text-m"
        assert chat_kwargs["response_format"] == {"type": "json_object"}
        assert "Drinking a full glass of water" in chat_kwargs["messages"][1]["content"]

        image_kwargs = client.images.generate.await_args.kwargs
        assert image_kwargs["model"] == "image-m"
        assert image_kwargs["prompt"] == "A museum plinth holding a glass of water"
        client.images.edit.assert_not_called()

    @pytest.mark.asyncio
    async def test_input_image_uses_edit(self):
        client = _client()
        image = InputImage(data=PNG_BYTES, filename="me.png", mime_type="image/png")

        await _generator(client).generate("my dog", image)

        client.images.generate.assert_not_called()
        assert client.images.edit.await_args.kwargs["image"] == ("me.png", PNG_BYTES, "image/png")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["not json", json.dumps({"other": 1}), json.dumps(["x"]), None])
    async def test_unusable_description_falls_back_to_prompt(self, content):
        client = _client(content=content)

        result = await _generator(client).generate("Eating a fruit")

        assert result.refined_prompt == "Eating a fruit"
        assert client.images.generate.await_args.kwargs["prompt"] == "Eating a fruit"

    @pytest.mark.asyncio
    async def test_missing_base64(self):
        with pytest.raises(GenerationError, match="no base64"):
            await _generator(_client(b64="")).generate("Eating a fruit")

    @pytest.mark.asyncio
    async def test_invalid_base64(self):
        with pytest.raises(GenerationError):
            await _generator(_client(b64="***not base64***")).generate("Eating a fruit")

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self):
        client = _client()
        client.images.generate.side_effect = OpenAIError("rate limited")

        with pytest.raises(GenerationError):
            await _generator(client).generate("Eating a fruit")


def test_models_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_TEXT_MODEL", "t-env")
    monkeypatch.setenv("OPENAI_IMAGE_MODEL", "i-env")
    generator = OpenAIImageGenerator(_client())
    assert generator.text_model == "t-env"
    assert generator.image_model == "i-env"
    assert generator.provider_name == "openai"
