from __future__ import annotations

from typing import NewType

ConversationId = NewType("ConversationId", str)
MessageId = NewType("MessageId", str)
IdentityId = NewType("IdentityId", str)

# Author id carried by messages generated by the assistant backend.
ASSISTANT_AUTHOR = IdentityId("assistant")

TEMP_ID_PREFIX = "tmp-"
