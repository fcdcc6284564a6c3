"""Chat queries and the chat mutations: create, delete and send message."""

import logging
import uuid
from dataclasses import dataclass, replace
from typing import Callable, Optional

from tradejournal.api.resources import ChatAPI
from tradejournal.api.schemas import SendMessageResponse
from tradejournal.cache import Mutation, MutationState, QueryClient, QueryObserver, keys
from tradejournal.core.exceptions import AppError, NetworkError, NotFoundError, RequestTimeoutError
from tradejournal.core.timezone import now_utc
from tradejournal.domain.models import (
    Chat,
    ChatThread,
    DEFAULT_CHAT_TITLE,
    Message,
    MessageRole,
    new_temp_id,
    title_from_message,
)
from tradejournal.repositories.protocols import TranscriptRepository
from tradejournal.services.notifications import Notifier

logger = logging.getLogger(__name__)

THINKING_PLACEHOLDER = "Thinking..."


@dataclass(frozen=True)
class SendMessageIntent:
    chat_id: str
    content: str


@dataclass(frozen=True)
class SendContext:
    """Ids of the optimistic messages, and the title replaced (if any)."""

    user_message_id: str
    placeholder_id: str
    previous_title: Optional[str] = None
    optimistic_title: Optional[str] = None
    created_thread: bool = False


@dataclass(frozen=True)
class RemovedChat:
    chat: Optional[Chat]
    index: int


def send_scope(chat_id: str) -> str:
    """Mutation scope allowing one message send per chat at a time."""
    return f"send-message:{chat_id}"


def _error_text(error: Exception) -> str:
    return error.message if isinstance(error, AppError) else str(error)


class ChatService:
    """
    Chat sidebar, chat threads and the assistant conversation.

    Sending a message shows the user's message and a "Thinking..."
    placeholder at once, both tagged with temporary ids; the placeholder is
    swapped for the reply on success, and both are stripped on failure.
    """

    def __init__(
        self,
        client: QueryClient,
        api: ChatAPI,
        notifier: Notifier,
        transcripts: Optional[TranscriptRepository] = None,
    ):
        self._client = client
        self._api = api
        self._notifier = notifier
        self._transcripts = transcripts
        self._typing: set[str] = set()
        self._typing_listeners: list[Callable[[str, bool], None]] = []

        self._create = Mutation(
            client,
            self._api.create_chat,
            on_optimistic_update=self._optimistic_create,
            on_success=self._create_succeeded,
            on_error=self._create_failed,
            name="create-chat",
        )
        self._delete = Mutation(
            client,
            self._send_delete,
            on_optimistic_update=self._optimistic_delete,
            on_success=self._delete_succeeded,
            on_error=self._delete_failed,
            scope=lambda chat_id: f"chat:{chat_id}",
            name="delete-chat",
        )
        self._send = Mutation(
            client,
            self._post_message,
            on_optimistic_update=self._optimistic_send,
            on_success=self._send_succeeded,
            on_error=self._send_failed,
            on_settled=self._send_settled,
            scope=lambda intent: send_scope(intent.chat_id),
            name="send-message",
        )

    # Queries

    def observe_chats(self, enabled: bool = True) -> QueryObserver[list[Chat]]:
        return self._client.observe(keys.CHATS, self._api.list_chats, enabled=enabled)

    def observe_chat(self, chat_id: Optional[str]) -> QueryObserver[ChatThread]:
        """Observe one thread; with no chat selected the observer stays disabled."""
        return self._client.observe(
            keys.chat(chat_id),
            self._thread_loader(chat_id),
            enabled=chat_id is not None,
        )

    def select_chat(self, observer: QueryObserver[ChatThread], chat_id: Optional[str]) -> None:
        """Point an existing thread observer at another chat."""
        observer.set_options(
            key=keys.chat(chat_id),
            fetcher=self._thread_loader(chat_id),
            enabled=chat_id is not None,
        )

    async def get_chat(self, chat_id: str) -> ChatThread:
        return await self._client.ensure_query_data(keys.chat(chat_id), self._thread_loader(chat_id))

    def is_typing(self, chat_id: str) -> bool:
        """True while the assistant reply for chat_id is pending."""
        return chat_id in self._typing

    def is_sending(self, chat_id: str) -> bool:
        return self._client.is_mutating(send_scope(chat_id))

    def on_typing_change(self, listener: Callable[[str, bool], None]) -> Callable[[], None]:
        self._typing_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._typing_listeners:
                self._typing_listeners.remove(listener)

        return unsubscribe

    def reset(self) -> None:
        """Stop every typing indicator; called when the user signs out."""
        for chat_id in list(self._typing):
            self._set_typing(chat_id, False)

    # Intents

    async def create_chat(self, title: str = DEFAULT_CHAT_TITLE) -> MutationState[Chat]:
        return await self._create.mutate(title)

    async def delete_chat(self, chat_id: str) -> MutationState[None]:
        """Delete a chat. A chat the server no longer has counts as deleted."""
        return await self._delete.mutate(chat_id)

    async def send_message(self, chat_id: str, content: str) -> MutationState[SendMessageResponse]:
        """
        Send a message to the assistant.

        Rejected with MutationInProgressError while a send to the same chat
        is still pending.
        """
        return await self._send.mutate(SendMessageIntent(chat_id=chat_id, content=content))

    async def start_chat(self, content: str) -> MutationState[SendMessageResponse]:
        """Create a chat and send its first message."""
        created = await self.create_chat()
        if created.is_error:
            return MutationState(status=created.status, error=created.error)
        return await self.send_message(created.data.id, content)

    # Thread loading

    def _thread_loader(self, chat_id: Optional[str]):
        async def load() -> ChatThread:
            return await self._load_thread(chat_id)

        return load

    async def _load_thread(self, chat_id: str) -> ChatThread:
        try:
            thread = await self._api.get_chat(chat_id)
        except (NetworkError, RequestTimeoutError) as e:
            stored = self._transcripts.get_thread(chat_id) if self._transcripts else None
            if stored is None:
                raise
            logger.warning(f"Chat {chat_id} unavailable ({e.message}), using local transcript")
            return stored

        if self._transcripts is not None:
            self._transcripts.save_thread(thread)
        return thread

    # Create

    def _optimistic_create(self, title: str) -> str:
        self._client.cancel_queries(keys.CHATS)
        temp = Chat(id=new_temp_id(), title=title, created_at=now_utc())
        self._client.update_query_data(keys.CHATS, lambda chats: [temp, *(chats or [])])
        return temp.id

    def _create_succeeded(self, chat: Chat, title: str, temp_id: str) -> None:
        def reconcile(chats: Optional[list[Chat]]) -> list[Chat]:
            chats = [c for c in (chats or []) if c.id != chat.id]
            for i, c in enumerate(chats):
                if c.id == temp_id:
                    chats[i] = chat
                    return chats
            return [chat, *chats]

        self._client.update_query_data(keys.CHATS, reconcile)
        # A new chat has no messages; seed its thread instead of fetching it
        self._client.set_query_data(keys.chat(chat.id), ChatThread(chat=chat))
        self._client.invalidate_queries(keys.CHATS)

    def _create_failed(self, error: Exception, title: str, temp_id: Optional[str]) -> None:
        if temp_id is not None:
            self._remove_from_list(temp_id)
            logger.info(f"Rolled back optimistic chat {temp_id}")
        self._notifier.error("Failed to create chat", _error_text(error))

    # Delete

    async def _send_delete(self, chat_id: str) -> None:
        try:
            await self._api.delete_chat(chat_id)
        except NotFoundError:
            logger.info(f"Chat {chat_id} already deleted")

    def _optimistic_delete(self, chat_id: str) -> RemovedChat:
        self._client.cancel_queries(keys.CHATS)
        self._client.cancel_queries(keys.chat(chat_id))
        for i, c in enumerate(self._client.get_query_data(keys.CHATS) or []):
            if c.id == chat_id:
                self._remove_from_list(chat_id)
                return RemovedChat(chat=c, index=i)
        return RemovedChat(chat=None, index=0)

    def _delete_succeeded(self, _: None, chat_id: str, removed: RemovedChat) -> None:
        self._client.remove_queries(keys.chat(chat_id))
        if self._transcripts is not None:
            self._transcripts.delete_thread(chat_id)
        self._client.invalidate_queries(keys.CHATS)
        self._notifier.success("Chat deleted")

    def _delete_failed(self, error: Exception, chat_id: str, removed: Optional[RemovedChat]) -> None:
        if removed is not None and removed.chat is not None:
            restored = removed.chat

            def reinsert(chats: Optional[list[Chat]]) -> Optional[list[Chat]]:
                chats = list(chats or [])
                if any(c.id == restored.id for c in chats):
                    return None
                chats.insert(min(removed.index, len(chats)), restored)
                return chats

            self._client.update_query_data(keys.CHATS, reinsert)
            logger.info(f"Rolled back optimistic delete of chat {chat_id}")
        self._notifier.error("Failed to delete chat", _error_text(error))

    # Send message

    async def _post_message(self, intent: SendMessageIntent) -> SendMessageResponse:
        return await self._api.send_message(intent.chat_id, intent.content)

    def _optimistic_send(self, intent: SendMessageIntent) -> SendContext:
        key = keys.chat(intent.chat_id)
        # A refetch landing now would drop the optimistic messages
        self._client.cancel_queries(key)

        user_message = Message(id=new_temp_id(), role=MessageRole.USER, content=intent.content)
        placeholder = Message(
            id=new_temp_id(), role=MessageRole.ASSISTANT, content=THINKING_PLACEHOLDER
        )

        cached = self._client.get_query_data(key)
        thread = cached or ChatThread(chat=self._listed_chat(intent.chat_id))
        previous_title = None
        optimistic_title = None
        # An unloaded thread may already have messages; only retitle a known-empty one
        if cached is not None and not cached.confirmed_messages and cached.chat.has_default_title:
            previous_title = thread.chat.title
            optimistic_title = title_from_message(intent.content)

        def append(current: Optional[ChatThread]) -> ChatThread:
            current = current or thread
            chat = current.chat
            if optimistic_title is not None:
                chat = replace(chat, title=optimistic_title)
            return ChatThread(chat=chat, messages=(*current.messages, user_message, placeholder))

        self._client.update_query_data(key, append)
        if optimistic_title is not None:
            self._retitle(intent.chat_id, optimistic_title)

        self._set_typing(intent.chat_id, True)
        return SendContext(
            user_message_id=user_message.id,
            placeholder_id=placeholder.id,
            previous_title=previous_title,
            optimistic_title=optimistic_title,
            created_thread=cached is None,
        )

    def _send_succeeded(
        self,
        response: SendMessageResponse,
        intent: SendMessageIntent,
        context: SendContext,
    ) -> None:
        reply = Message(
            id=response.message.id or uuid.uuid4().hex,
            role=response.message.role,
            content=response.message.content,
        )

        def swap_placeholder(thread: Optional[ChatThread]) -> Optional[ChatThread]:
            if thread is None:
                return None
            messages = tuple(
                reply if m.id == context.placeholder_id else m for m in thread.messages
            )
            return ChatThread(chat=thread.chat, messages=messages)

        if context.created_thread:
            # Only the new exchange is known; the full thread comes from the refetch
            self._client.remove_queries(keys.chat(intent.chat_id))
        else:
            self._client.update_query_data(keys.chat(intent.chat_id), swap_placeholder)

        self._client.invalidate_queries(keys.chat(intent.chat_id))
        self._client.invalidate_queries(keys.CHATS)
        if response.trade_extracted:
            self._client.invalidate_queries(keys.TRADES)
            self._client.invalidate_queries(keys.ANALYTICS)
            self._notifier.success("Trade logged", "A trade was extracted from your message.")

    def _send_failed(
        self,
        error: Exception,
        intent: SendMessageIntent,
        context: Optional[SendContext],
    ) -> None:
        if context is not None:
            tagged = {context.user_message_id, context.placeholder_id}

            def strip(thread: Optional[ChatThread]) -> Optional[ChatThread]:
                if thread is None:
                    return None
                chat = thread.chat
                if context.previous_title is not None and chat.title == context.optimistic_title:
                    chat = replace(chat, title=context.previous_title)
                messages = tuple(m for m in thread.messages if m.id not in tagged)
                return ChatThread(chat=chat, messages=messages)

            key = keys.chat(intent.chat_id)
            if context.created_thread:
                # The thread had not loaded; drop the stand-in and load it again
                self._client.remove_queries(key)
                self._client.invalidate_queries(key)
            else:
                self._client.update_query_data(key, strip)
            if context.previous_title is not None:
                self._retitle(
                    intent.chat_id, context.previous_title, only_if=context.optimistic_title
                )
            logger.info(f"Rolled back optimistic send in chat {intent.chat_id}")
        self._notifier.error("Failed to send message", _error_text(error))

    def _send_settled(self, data, error, intent: SendMessageIntent, context) -> None:
        self._set_typing(intent.chat_id, False)

    # Helpers

    def _retitle(self, chat_id: str, title: str, only_if: Optional[str] = None) -> None:
        def rename(chats: Optional[list[Chat]]) -> Optional[list[Chat]]:
            if not chats:
                return None
            return [
                replace(c, title=title)
                if c.id == chat_id and (only_if is None or c.title == only_if)
                else c
                for c in chats
            ]

        self._client.update_query_data(keys.CHATS, rename)

    def _listed_chat(self, chat_id: str) -> Chat:
        for chat in self._client.get_query_data(keys.CHATS) or []:
            if chat.id == chat_id:
                return chat
        return Chat(id=chat_id)

    def _remove_from_list(self, chat_id: str) -> None:
        self._client.update_query_data(
            keys.CHATS,
            lambda chats: [c for c in chats if c.id != chat_id] if chats is not None else None,
        )

    def _set_typing(self, chat_id: str, typing: bool) -> None:
        if typing:
            self._typing.add(chat_id)
        else:
            self._typing.discard(chat_id)
        for listener in list(self._typing_listeners):
            listener(chat_id, typing)
