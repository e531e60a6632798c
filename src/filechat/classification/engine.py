"""Intent classification built on the retrying language service client.

Both classifiers ask the language service for a JSON object and validate it
into a typed intent. When the service is unavailable or answers with
something unusable, a keyword heuristic takes over so the conversation can
still move forward, only less precisely.
"""

from __future__ import annotations

import logging
import re
import textwrap
from typing import Callable, Iterable, Optional, TypeVar

from filechat.llm.client import RetryingClient
from filechat.llm.models import GenerationRequest
from filechat.llm.parsing import extract_json_object

from .models import ChatContext, ChatIntent, SessionIntent, SessionKind

LOGGER = logging.getLogger(__name__)

IntentT = TypeVar("IntentT", ChatIntent, SessionIntent)

CANCEL_PHRASES = ("cancel", "stop", "abort", "quit", "never mind", "nevermind", "forget it")
CONFIRM_PHRASES = (
    "yes",
    "y",
    "yeah",
    "yep",
    "ok",
    "okay",
    "sure",
    "confirm",
    "proceed",
    "go ahead",
    "do it",
    "sounds good",
    "looks good",
    "please do",
    "correct",
    "fine",
)
CHANGE_PHRASES = ("change", "no", "nope", "different", "another", "redo", "instead", "modify")
NAME_PHRASES = ("name", "rename", "call it", "called")
LOCATION_PHRASES = ("location", "place", "where", "somewhere", "put it", "save it")

SEARCH_PHRASES = ("find", "search", "look for", "where is", "where's", "locate")
LIST_PHRASES = ("recent", "latest", "list files", "show files", "show me files", "list my")
ORGANIZE_PHRASES = ("organize", "organise", "tidy", "clean up", "sort out", "reorganize")
COLLECT_PHRASES = ("collect", "gather", "group these", "put these", "move these", "into a folder")

FILE_TYPE_WORDS = {
    "pdf": "pdf",
    "word": "docx",
    "docx": "docx",
    "doc": "doc",
    "excel": "xlsx",
    "xlsx": "xlsx",
    "xls": "xls",
    "spreadsheet": "xlsx",
    "powerpoint": "pptx",
    "pptx": "pptx",
    "ppt": "ppt",
    "slides": "pptx",
    "text": "txt",
    "txt": "txt",
    "markdown": "md",
    "md": "md",
    "csv": "csv",
}

LOCATION_WORDS = ("current folder", "this folder", "desktop", "documents", "downloads")

_NAMED_FOLDER = re.compile(
    r"\b(?:called|named)\s+[\"']?([^\"'\n]+?)[\"']?\s*[.!?]?$", re.IGNORECASE
)
_NEW_VALUE = re.compile(r"\bto\s+[\"']?([^\"'\n]+?)[\"']?\s*[.!?]?$", re.IGNORECASE)
_FILLER = re.compile(r"^(?:please\s+)?(?:call it|name it|use|make it)\s+", re.IGNORECASE)
_TRAILING_LOCATION = re.compile(
    r"\s+(?:in|on|to|under|inside)\s+(?:the\s+|my\s+)?(?:"
    + "|".join(re.escape(word) for word in LOCATION_WORDS)
    + r")\b.*$",
    re.IGNORECASE,
)

FALLBACK_REPLY = (
    "I can't reach the assistant right now. I can still search for files, list recent "
    "files, organize the open folder, or collect search results into a folder."
)

_CHAT_PROMPT = textwrap.dedent(
    """\
    You route messages for a file assistant that works on the user's Desktop,
    Documents, and Downloads folders.

    Context:
    - Results from the previous search: {result_count}
    - Folder currently open: {current_folder}

    Choose exactly one action:
    - "search": the user wants to find files. Put a concise search query in "query".
    - "list_files": the user wants recent files. Put an extension such as "pdf" in
      "file_type" when they mention a type, else null.
    - "organize": the user wants the open folder reorganized.
    - "collect": the user wants the previous search results gathered into one folder.
      Put the folder name in "folder_name" when they give one.
    - "chat": anything else. Put a short, helpful answer in "reply".

    Message: "{message}"

    Answer with one JSON object only:
    {{"action": "...", "query": null, "file_type": null, "folder_name": null, "reply": null}}"""
)

_SESSION_PROMPT = textwrap.dedent(
    """\
    You interpret replies in a file assistant conversation.

    Task: {task}
    Current step: {step}
    {step_hint}

    Recognize what the user means, not just exact words: any agreement counts as
    "confirm", any request to stop counts as "cancel".
    Allowed actions: {actions}

    Message: "{message}"

    Answer with one JSON object only:
    {{"action": "...", "folder_name": null, "location": null}}"""
)

_SESSION_ACTIONS = {
    ("organize", "hearing"): ("cancel", "other"),
    ("organize", "confirm"): ("confirm", "change", "cancel", "other"),
    ("organize", "executing"): ("cancel", "other"),
    ("collect", "naming"): ("provide_name", "cancel"),
    ("collect", "existing_folder"): ("confirm", "change", "cancel", "other"),
    ("collect", "location"): ("provide_location", "cancel"),
    ("collect", "confirm"): ("confirm", "change_name", "change_location", "cancel", "other"),
}

_STEP_HINTS = {
    ("organize", "hearing"): "The user is describing how the folder should be organized.",
    ("organize", "confirm"): (
        'The user reviews proposed changes. Use "change" when they want to start over with '
        'new preferences, "other" when they add a remark.'
    ),
    ("collect", "naming"): 'Extract the folder name into "folder_name" and any location '
    'such as Desktop, Documents, Downloads, or "current folder" into "location".',
    ("collect", "existing_folder"): "The user was asked whether to reuse an existing folder "
    'with a similar name. "confirm" reuses it, "change" picks a new location.',
    ("collect", "location"): 'Extract where to create the folder into "location".',
    ("collect", "confirm"): "The user reviews the folder name and location before files move. "
    'Fill "folder_name" or "location" when they supply a new value.',
}


def contains_phrase(text: str, phrases: Iterable[str]) -> bool:
    """Return whether any phrase appears in ``text`` as whole words."""
    lowered = text.lower()
    return any(re.search(rf"(?<!\w){re.escape(phrase)}(?!\w)", lowered) for phrase in phrases)


def clean_value(text: str) -> str:
    """Strip filler words, quotes, and trailing punctuation from a proposed value."""
    value = _FILLER.sub("", text.strip())
    return value.strip().rstrip(".!?").strip().strip("\"'“”‘’「」").strip()


class _JsonIntentClassifier:
    """Shared request/parse/fallback flow for both classifiers."""

    def __init__(self, client: RetryingClient, *, temperature: float = 0.1) -> None:
        self._client = client
        self._temperature = temperature

    def _run(
        self,
        prompt: str,
        parser: Callable[[str], IntentT],
        fallback: Callable[[], IntentT],
    ) -> IntentT:
        result = self._client.call_structured(
            GenerationRequest(prompt=prompt, temperature=self._temperature), parser
        )
        if result.ok and result.value is not None:
            return result.value
        LOGGER.warning(
            "Intent classification degraded to keywords: %s",
            result.error.message if result.error else "no value",
        )
        return fallback()


class ChatIntentClassifier(_JsonIntentClassifier):
    """Map a free chat message to a routing action."""

    def classify(self, message: str, context: Optional[ChatContext] = None) -> ChatIntent:
        """Return the routing intent for ``message``."""
        context = context or ChatContext()
        prompt = _CHAT_PROMPT.format(
            result_count=context.result_count,
            current_folder=str(context.current_folder) if context.current_folder else "none",
            message=message,
        )
        return self._run(
            prompt,
            lambda text: ChatIntent.model_validate(extract_json_object(text)),
            lambda: self.fallback(message),
        )

    @staticmethod
    def fallback(message: str) -> ChatIntent:
        """Keyword routing used when the language service cannot decide."""
        text = message.strip()
        if contains_phrase(text, ORGANIZE_PHRASES):
            return ChatIntent(action="organize", source="fallback")
        if contains_phrase(text, COLLECT_PHRASES):
            named = _NAMED_FOLDER.search(text)
            return ChatIntent(
                action="collect",
                folder_name=clean_value(named.group(1)) if named else None,
                source="fallback",
            )
        if contains_phrase(text, LIST_PHRASES):
            return ChatIntent(action="list_files", file_type=_file_type(text), source="fallback")
        if contains_phrase(text, SEARCH_PHRASES):
            query = _strip_phrases(text, SEARCH_PHRASES) or text
            return ChatIntent(action="search", query=query, source="fallback")
        return ChatIntent(action="chat", reply=FALLBACK_REPLY, source="fallback")


class SessionIntentClassifier(_JsonIntentClassifier):
    """Interpret replies inside organize and collect sessions."""

    def classify(self, message: str, kind: SessionKind, step: str) -> SessionIntent:
        """Return the session-level intent for ``message`` at ``step``."""
        actions = _SESSION_ACTIONS.get((kind, step), ("confirm", "cancel", "other"))
        task = (
            "Reorganize a folder according to the user's preferences."
            if kind == "organize"
            else "Collect search results into one folder."
        )
        prompt = _SESSION_PROMPT.format(
            task=task,
            step=step,
            step_hint=_STEP_HINTS.get((kind, step), ""),
            actions=", ".join(f'"{action}"' for action in actions),
            message=message,
        )
        return self._run(
            prompt,
            lambda text: SessionIntent.model_validate(extract_json_object(text)),
            lambda: self.fallback(message, kind, step),
        )

    @staticmethod
    def fallback(message: str, kind: SessionKind, step: str) -> SessionIntent:
        """Fixed keyword sets standing in for intent recognition."""
        text = message.strip()
        if contains_phrase(text, CANCEL_PHRASES):
            return SessionIntent(action="cancel", source="fallback")
        if kind == "collect" and step == "naming":
            named = _NAMED_FOLDER.search(text)
            name = named.group(1) if named else text
            return SessionIntent(
                action="provide_name",
                folder_name=clean_value(_TRAILING_LOCATION.sub("", name)) or None,
                location=_mentioned_location(text),
                source="fallback",
            )
        if kind == "collect" and step == "location":
            return SessionIntent(action="provide_location", location=text, source="fallback")
        wants_change = contains_phrase(text, CHANGE_PHRASES)
        if kind == "collect" and step == "confirm":
            new_value = _NEW_VALUE.search(text)
            if contains_phrase(text, NAME_PHRASES):
                return SessionIntent(
                    action="change_name",
                    folder_name=clean_value(new_value.group(1)) if new_value else None,
                    source="fallback",
                )
            if wants_change and contains_phrase(text, LOCATION_PHRASES):
                return SessionIntent(
                    action="change_location",
                    location=new_value.group(1) if new_value else None,
                    source="fallback",
                )
        if wants_change:
            return SessionIntent(action="change", source="fallback")
        if contains_phrase(text, CONFIRM_PHRASES):
            return SessionIntent(action="confirm", source="fallback")
        return SessionIntent(action="other", source="fallback")


def _strip_phrases(text: str, phrases: Iterable[str]) -> str:
    stripped = text
    for phrase in phrases:
        stripped = re.sub(rf"(?<!\w){re.escape(phrase)}(?!\w)", " ", stripped, flags=re.IGNORECASE)
    stripped = re.sub(r"\b(?:me|my|the|a|an|for|files?|please)\b", " ", stripped, flags=re.I)
    return " ".join(stripped.split()).strip(" ?.!")


def _mentioned_location(text: str) -> Optional[str]:
    for word in LOCATION_WORDS:
        if contains_phrase(text, (word,)):
            return word
    return None


def _file_type(text: str) -> Optional[str]:
    for word in re.findall(r"\w+", text.lower()):
        if word in FILE_TYPE_WORDS:
            return FILE_TYPE_WORDS[word]
    return None


__all__ = [
    "ChatIntentClassifier",
    "SessionIntentClassifier",
    "contains_phrase",
    "clean_value",
    "FALLBACK_REPLY",
]
