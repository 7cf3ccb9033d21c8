import base58
import pytest

from plex_core.domain.conversation import Conversation, new_conversation_id
from plex_core.domain.exceptions import DecodeError
from plex_core.domain.models import ChatRequest, Message


def test_new_conversation_id_is_stable_for_same_input():
    msgs = [Message(role="user", content="hi")]
    a = new_conversation_id(msgs, now="2024-01-01")
    b = new_conversation_id(msgs, now="2024-01-01")
    c = new_conversation_id(msgs, now="2024-01-02")
    assert a == b
    assert a != c
    assert len(a) >= 43
    assert "/" not in a and "." not in a


def test_new_conversation_id_empty_messages():
    assert new_conversation_id([]) == base58.b58encode(b"empty").decode("ascii")


def test_conversation_from_dict_rejects_bad_records():
    with pytest.raises(DecodeError):
        Conversation.from_dict([])
    with pytest.raises(DecodeError):
        Conversation.from_dict({"messages": []})
    with pytest.raises(DecodeError):
        Conversation.from_dict({"id": "x", "messages": [{"role": "tool", "content": "x"}]})
    conv = Conversation.from_dict({"id": "x", "messages": [{"role": "user", "content": "q"}]})
    assert conv.messages == [Message(role="user", content="q")]


def test_chat_request_payload():
    req = ChatRequest(model="sonar", messages=[Message(role="user", content="hi")])
    assert req.to_payload() == {
        "model": "sonar",
        "messages": [{"role": "user", "content": "hi"}],
        "stream": True,
    }
    req.max_tokens = 128
    assert req.to_payload()["max_tokens"] == 128
