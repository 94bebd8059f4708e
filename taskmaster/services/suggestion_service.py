"""Description suggestions for new tasks, drafted by an OpenAI chat model."""

import logging
from typing import Optional

import openai
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from ..config import Settings

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "API Key is not configured. Cannot generate description."
EMPTY_TITLE_MESSAGE = "Please provide a task title to generate a description."
NO_OUTPUT_MESSAGE = "No description generated. Try a more specific title or write one manually."
INVALID_KEY_MESSAGE = "Error: The API key is invalid. Please check your configuration."
API_ERROR_MESSAGE = (
    "Failed to generate description due to an API error. "
    "Please try again later or write one manually."
)

DIAGNOSTIC_MESSAGES = frozenset({
    MISSING_KEY_MESSAGE,
    EMPTY_TITLE_MESSAGE,
    NO_OUTPUT_MESSAGE,
    INVALID_KEY_MESSAGE,
    API_ERROR_MESSAGE,
})

PROMPT_TEMPLATE = (
    'Generate a concise and actionable task description for a task titled: "{title}". '
    "The description should be suitable for a task management app. "
    "Keep it brief, ideally 1-2 sentences. "
    "If the title is vague, try to make a reasonable suggestion."
)


def is_diagnostic(text: str) -> bool:
    """Whether ``text`` is a failure message rather than a suggestion."""
    return text in DIAGNOSTIC_MESSAGES


def _is_auth_error(exc: Exception) -> bool:
    if isinstance(exc, openai.AuthenticationError):
        return True
    message = str(exc).lower()
    return "api key not valid" in message or "incorrect api key" in message


class DescriptionSuggestionClient:
    """Suggests task descriptions from titles.

    ``suggest`` and ``asuggest`` never raise: every failure is reported as a
    human-readable message that can be shown in place of the suggestion.
    """

    def __init__(self, settings: Settings, llm: Optional[BaseChatModel] = None):
        """Initialize the client.

        Args:
            settings: Application settings
            llm: Chat model to use instead of one built from settings
        """
        self.settings = settings
        self._llm = llm

    @property
    def is_configured(self) -> bool:
        return self._llm is not None or bool(self.settings.openai_api_key)

    def _get_llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = ChatOpenAI(
                model=self.settings.model_name,
                api_key=self.settings.openai_api_key,
                temperature=self.settings.suggestion_temperature,
            )
        return self._llm

    def _precheck(self, title: str) -> Optional[str]:
        if not self.is_configured:
            logger.warning("Description suggestion requested but no API key is configured")
            return MISSING_KEY_MESSAGE
        if not title or not title.strip():
            return EMPTY_TITLE_MESSAGE
        return None

    @staticmethod
    def _messages(title: str):
        return [HumanMessage(content=PROMPT_TEMPLATE.format(title=title.strip()))]

    @staticmethod
    def _result_text(response) -> str:
        text = getattr(response, "content", "")
        if not isinstance(text, str):
            text = str(text or "")
        text = text.strip()
        return text or NO_OUTPUT_MESSAGE

    @staticmethod
    def _failure_text(exc: Exception) -> str:
        logger.error(f"Error generating task description: {str(exc)}")
        if _is_auth_error(exc):
            return INVALID_KEY_MESSAGE
        return API_ERROR_MESSAGE

    def suggest(self, title: str) -> str:
        """Suggest a description for ``title``.

        Args:
            title: Task title

        Returns:
            Suggested description, or a diagnostic message
        """
        diagnostic = self._precheck(title)
        if diagnostic:
            return diagnostic
        try:
            response = self._get_llm().invoke(self._messages(title))
        except Exception as e:
            return self._failure_text(e)
        return self._result_text(response)

    async def asuggest(self, title: str) -> str:
        """Async variant of ``suggest``."""
        diagnostic = self._precheck(title)
        if diagnostic:
            return diagnostic
        try:
            response = await self._get_llm().ainvoke(self._messages(title))
        except Exception as e:
            return self._failure_text(e)
        return self._result_text(response)


# Global suggestion client instance - will be initialized during app startup
_suggestion_client: Optional[DescriptionSuggestionClient] = None


def get_suggestion_client() -> Optional[DescriptionSuggestionClient]:
    """Get the global suggestion client, or None if not initialized."""
    return _suggestion_client


def initialize_suggestion_client(settings: Settings) -> DescriptionSuggestionClient:
    """Initialize the global suggestion client."""
    global _suggestion_client
    _suggestion_client = DescriptionSuggestionClient(settings)
    return _suggestion_client
