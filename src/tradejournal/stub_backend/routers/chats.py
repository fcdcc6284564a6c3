from fastapi import APIRouter, Depends, HTTPException, Response

from tradejournal.api.schemas import ChatCreateRequest
from tradejournal.stub_backend.deps import check_failure, get_current_user, get_store
from tradejournal.stub_backend.store import StubChat, StubStore

router = APIRouter(prefix="/chats", tags=["chats"])


def chat_json(chat: StubChat) -> dict:
    return {"id": chat.id, "title": chat.title, "created_at": chat.created_at.isoformat()}


@router.get("")
def list_chats(
    user_id: str = Depends(get_current_user),
    store: StubStore = Depends(get_store),
):
    """List the caller's chats, newest first."""
    check_failure(store, "list_chats")
    return [chat_json(c) for c in store.chats_for(user_id)]


@router.post("", status_code=201)
def create_chat(
    data: ChatCreateRequest,
    user_id: str = Depends(get_current_user),
    store: StubStore = Depends(get_store),
):
    """Create a chat."""
    check_failure(store, "create_chat")
    return chat_json(store.create_chat(user_id, data.title))


@router.get("/{chat_id}")
def get_chat(
    chat_id: str,
    user_id: str = Depends(get_current_user),
    store: StubStore = Depends(get_store),
):
    """Get a chat with its messages."""
    check_failure(store, "get_chat")
    chat = store.get_chat(user_id, chat_id)
    if chat is None:
        raise HTTPException(status_code=404, detail="Chat not found")
    return {"chat": chat_json(chat), "messages": list(chat.messages)}


@router.delete("/{chat_id}", status_code=204)
def delete_chat(
    chat_id: str,
    user_id: str = Depends(get_current_user),
    store: StubStore = Depends(get_store),
):
    """Delete a chat and its messages."""
    check_failure(store, "delete_chat")
    if store.get_chat(user_id, chat_id) is None:
        raise HTTPException(status_code=404, detail="Chat not found")
    del store.chats[chat_id]
    return Response(status_code=204)
