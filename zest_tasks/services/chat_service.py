"""
Chat completion service - relays one message to the completion API
"""
from anthropic import APIStatusError, AsyncAnthropic

from zest_tasks.config import get_settings
from zest_tasks.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

ASSISTANT_SYSTEM_PROMPT = """You are a helpful task management assistant integrated into the "Zest Tasks" app.
Your expertise is in productivity, time management, and organization.
Provide helpful, concise responses focused on helping users manage their tasks,
workflows, and productivity. Responses should be friendly, motivational, and actionable.
Keep your responses concise (under 200 words) unless the user asks for detailed information."""


class ChatNotConfiguredError(RuntimeError):
    pass


class UpstreamError(Exception):
    """The completion API answered with a non-2xx status"""

    def __init__(self, status_code: int, body: str):
        super().__init__(body)
        self.status_code = status_code
        self.body = body


class EmptyCompletionError(ValueError):
    pass


class ChatService:
    def __init__(self):
        api_key = settings.ANTHROPIC_API_KEY or None
        self.model = settings.CHAT_MODEL
        self.max_tokens = settings.CHAT_MAX_TOKENS
        self.temperature = settings.CHAT_TEMPERATURE
        self.top_p = settings.CHAT_TOP_P
        self._available = bool(api_key)
        if self._available:
            self.client = AsyncAnthropic(api_key=api_key)
        else:
            self.client = None

    def ensure_configured(self) -> None:
        if not self._available or self.client is None:
            logger.error("ANTHROPIC_API_KEY is not set")
            raise ChatNotConfiguredError("ANTHROPIC_API_KEY is not set")
        logger.debug("ANTHROPIC_API_KEY is set")

    async def complete(self, message: str) -> str:
        """
        Send a single user message with the assistant prompt and return the reply text.
        No conversation state is kept between calls.
        """
        self.ensure_configured()

        params = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": ASSISTANT_SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": message}],
        }
        if self.top_p is not None:
            params["top_p"] = self.top_p

        logger.info("Sending request to completion API...")
        try:
            response = await self.client.messages.create(**params)
        except APIStatusError as e:
            body = e.response.text if e.response is not None else str(e)
            logger.error(f"Completion API error {e.status_code}: {body}")
            raise UpstreamError(e.status_code, body) from e

        text = "".join(
            block.text for block in (response.content or [])
            if getattr(block, "type", None) == "text"
        )
        if not text:
            logger.error(f"Invalid response from completion API: {response}")
            raise EmptyCompletionError("Invalid response from completion API")
        return text


# Singleton instance
chat_service = ChatService()
