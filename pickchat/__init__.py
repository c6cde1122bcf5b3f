"""
pickchat: a terminal chat client that streams several candidate replies
per turn and lets you pick one before it joins the conversation.

Plugins in `_pickchat/` can `import pickchat` and use `@pickchat.override`.
"""
import logging

logging.getLogger("pickchat").addHandler(logging.NullHandler())

from .conversation import Message, ConversationLog
from .candidates import CandidateSet, CandidateIndexError
from .streaming import Delta, StreamClosed, StreamingSession
from .turns import Phase, TurnController, transition
from .render import compute_display, instruction_for
from .keys import Keys, ConfigError, load_keys
from .hooks import overridable, override, load_plugins
from .backend import Backend, ModelDefinition, LiteLLMBackend, MockBackend, make_backend

__all__ = [
    "Message", "ConversationLog", "CandidateSet", "CandidateIndexError",
    "Delta", "StreamClosed", "StreamingSession", "Phase", "TurnController", "transition",
    "compute_display", "instruction_for", "Keys", "ConfigError", "load_keys",
    "overridable", "override", "load_plugins",
    "Backend", "ModelDefinition", "LiteLLMBackend", "MockBackend", "make_backend",
]
