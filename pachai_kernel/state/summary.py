"""Short recap of a conversation's last theme, used when reopening it."""

import re
from collections import Counter
from typing import List, Sequence

from pachai_kernel.models.conversation import Message, MessageRole

STOP_WORDS = {
    "o", "a", "os", "as", "um", "uma", "de", "do", "da", "dos", "das",
    "em", "no", "na", "nos", "nas", "para", "por", "com", "sem",
    "que", "qual", "quais", "quando", "onde", "como", "porque",
    "é", "são", "foi", "ser", "estar", "ter", "há", "tem",
    "eu", "você", "ele", "ela", "nós", "eles", "elas",
    "me", "te", "se", "vos", "lhe", "lhes",
    "isso", "isto", "aquilo", "aqui", "ali", "lá",
    "muito", "mais", "menos", "pouco", "tanto",
    "já", "ainda", "sempre", "nunca", "agora", "então", "depois",
}


def _excerpt(text: str, limit: int) -> str:
    if len(text) > limit:
        return f"Na última vez, você estava explorando: {text[:limit]}..."
    return f"Na última vez, você estava explorando: {text}"


def get_conversation_summary(messages: Sequence[Message]) -> str:
    """Two-line-at-most recap built from the last user messages."""
    if not messages:
        return "Conversa sem histórico anterior."

    user_messages: List[str] = [
        m.content.strip() for m in list(messages)[-10:]
        if m.role == MessageRole.USER and m.content.strip()
    ]
    if not user_messages:
        return "Conversa iniciada recentemente."

    last_user_messages = user_messages[-4:]
    if len(last_user_messages) == 1:
        return _excerpt(last_user_messages[0], 150)

    words = []
    for msg in last_user_messages:
        words.extend(
            w for w in re.sub(r"[^\w\s]", " ", msg.lower()).split()
            if len(w) > 3 and w not in STOP_WORDS
        )

    top_words = [word for word, _ in Counter(words).most_common(5)]
    if top_words:
        return f"Na última vez, estávamos explorando temas relacionados a: {', '.join(top_words)}."

    return _excerpt(last_user_messages[-1], 100)
