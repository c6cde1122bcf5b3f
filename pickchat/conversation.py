from dataclasses import dataclass, field
from typing import List, Literal


Role = Literal["system", "user", "assistant"]
ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class Message:
    role: Role
    text: str


@dataclass
class ConversationLog:
    '''
    Append-only transcript of the session.
    Only the control loop writes to it, so it has no lock.
    '''
    messages: List[Message] = field(default_factory=list)

    def append(self, role: Role, text: str) -> Message:
        if role not in ROLES:
            raise ValueError(f"unknown role '{role}'")
        if role == "user":
            text = text.strip()
        msg = Message(role, text)
        self.messages.append(msg)
        return msg

    def __len__(self): return len(self.messages)
    def __iter__(self): return iter(self.messages)

    def render(self) -> str:
        return "\n".join(f"[{m.role}] {m.text}\n" for m in self.messages)
