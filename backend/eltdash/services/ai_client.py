"""
Chat client for the dashboard assistant.

Perplexity speaks the OpenAI wire format, so both providers go through the
openai library with a different base URL and key.
"""
import json

from flask import current_app
from openai import OpenAI, OpenAIError

UNAVAILABLE_MESSAGE = (
    "I'm sorry, the AI assistant is not available right now. "
    "Please try again later or contact your administrator."
)
ERROR_MESSAGE = "I'm sorry, I ran into a problem answering that. Please try again later."

SYSTEM_PROMPT = """You are an AI assistant for the ELT Program dashboard, a school management system for aviation English training.
Be precise, concise, helpful, and professional.

Key information about the ELT Program:
- It manages three schools: KFNA, NFS East and NFS West
- Instructors are assigned to a school and live in a compound
- The system tracks ALCPT, Book, ECL and OPI test scores
- Passing scores are ALCPT 75, Book 65, ECL 80 and 70 for other tests
- Instructor evaluations pass at 85"""


def build_system_prompt(context=None):
    if not context:
        return SYSTEM_PROMPT
    if not isinstance(context, str):
        context = json.dumps(context, default=str)
    return f"{SYSTEM_PROMPT}\n\nAdditional context information: {context}"


class ChatClient:
    """
    Thin wrapper over an OpenAI-compatible chat completions endpoint.
    """

    def __init__(self, api_key, model, base_url=None):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self._client = None

    @property
    def available(self):
        return bool(self.api_key)

    @property
    def client(self):
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    def complete(self, messages, temperature=0.2, max_tokens=800, json_mode=False):
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )
        return response.choices[0].message.content or ""

    def chat(self, message, history=None, context=None):
        """
        Answer a user message. Never raises: a missing key or an upstream
        failure is logged and turned into an apology the widget can display.
        """
        if not self.available:
            current_app.logger.warning("AI chat requested but no API key is configured for %s", self.model)
            return UNAVAILABLE_MESSAGE

        messages = [{"role": "system", "content": build_system_prompt(context)}]
        messages.extend({"role": m["role"], "content": m["content"]} for m in history or [])
        messages.append({"role": "user", "content": message})

        try:
            return self.complete(messages) or ERROR_MESSAGE
        except OpenAIError as exc:
            current_app.logger.error("AI provider call failed: %s", exc)
            return ERROR_MESSAGE


def get_client(provider="openai"):
    config = current_app.config
    if provider == "perplexity":
        return ChatClient(
            api_key=config.get("PERPLEXITY_API_KEY"),
            model=config.get("PERPLEXITY_MODEL"),
            base_url=config.get("PERPLEXITY_BASE_URL"),
        )
    return ChatClient(
        api_key=config.get("OPENAI_API_KEY"),
        model=config.get("OPENAI_MODEL"),
    )
