# ABOUTME: Detects heartbeat posts among inbound Telegram messages
# ABOUTME: Applies chat/topic scoping and a case-sensitive title marker match

from dataclasses import dataclass
from typing import Any


@dataclass
class HeartbeatMatch:
    """
    Result of checking a message for a heartbeat.

    Attributes:
        is_heartbeat: True if the message is in scope and carries the marker
        title: Title of the first matching payload block, if any
        reason: Why the message was rejected (for debug logging)
    """

    is_heartbeat: bool
    title: str | None = None
    reason: str | None = None


def payload_titles(message: dict[str, Any]) -> list[str]:
    """
    Collect the titles of a message's payload blocks, in order.

    A message carries up to two blocks, its text and its media caption.
    The title of a block is its first non-empty line.
    """
    titles: list[str] = []
    for key in ("text", "caption"):
        body = message.get(key)
        if not body:
            continue
        for line in body.splitlines():
            if line.strip():
                titles.append(line.strip())
                break
    return titles


def match_heartbeat(
    message: dict[str, Any],
    marker: str,
    chat_id: int,
    thread_id: int | None = None,
    own_user_id: int | None = None,
) -> HeartbeatMatch:
    """
    Decide whether a Telegram message is a heartbeat.

    Rules:
    1. The message must be in the heartbeat chat
    2. If a topic is configured, the message must be in that topic
    3. Messages sent by this bot are never heartbeats
    4. The first payload title containing `marker` wins; the rest are ignored

    Args:
        message: Telegram Message object as a dict
        marker: Substring a title must contain (case-sensitive)
        chat_id: Chat heartbeats are posted in
        thread_id: Optional forum topic inside that chat
        own_user_id: This bot's user id, if known

    Returns:
        HeartbeatMatch describing the outcome
    """
    if message.get("chat", {}).get("id") != chat_id:
        return HeartbeatMatch(is_heartbeat=False, reason="wrong chat")

    if thread_id is not None and message.get("message_thread_id") != thread_id:
        return HeartbeatMatch(is_heartbeat=False, reason="wrong topic")

    sender = message.get("from") or {}
    if own_user_id is not None and sender.get("id") == own_user_id:
        return HeartbeatMatch(is_heartbeat=False, reason="own message")

    titles = payload_titles(message)
    if not titles:
        return HeartbeatMatch(is_heartbeat=False, reason="no payload")

    for title in titles:
        if marker in title:
            return HeartbeatMatch(is_heartbeat=True, title=title)

    return HeartbeatMatch(is_heartbeat=False, reason="no marker")
