"""
State Machine Result.

Defines the result structure returned by state machine processing.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class QuickReply:
    """A selectable option attached to an outbound message."""
    label: str
    id: str


@dataclass
class OutboundMessage:
    """A message the bot sends back to the customer."""
    text: str
    options: list[QuickReply] = field(default_factory=list)

    @property
    def has_options(self) -> bool:
        return bool(self.options)


@dataclass
class StateMachineResult:
    """Result from state machine processing."""
    messages: list[OutboundMessage] = field(default_factory=list)
    conversation_closed: bool = False

    @classmethod
    def reply(cls, *texts: str, options: Optional[list[QuickReply]] = None) -> "StateMachineResult":
        """Build a result from one or more plain texts; options go on the last one."""
        messages = [OutboundMessage(text=text) for text in texts]
        if options and messages:
            messages[-1].options = list(options)
        return cls(messages=messages)

    @property
    def texts(self) -> list[str]:
        return [m.text for m in self.messages]
