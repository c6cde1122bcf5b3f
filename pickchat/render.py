from typing import Optional

from .candidates import CandidateSet
from .conversation import ConversationLog
from .turns import Phase


INSTRUCTIONS = {
    Phase.AWAITING_SYSTEM_PROMPT: "Enter a system message (or leave empty) and press Enter to set it. Press Ctrl+C to quit.",
    Phase.AWAITING_USER_MESSAGE: "Enter a message and press Enter to send it. Press Ctrl+C to quit.",
    Phase.GENERATING: "Wait...",
    Phase.CANDIDATES_READY: "Wait...",
    Phase.CHOOSING_CANDIDATE: "Choose an option by typing its number and pressing Enter, typing anything else will regenerate the reply. Press Ctrl+C to quit.",
}


def compute_display(phase: Phase, log: ConversationLog, candidates: Optional[CandidateSet]) -> str:
    '''
    Transcript text for the viewport.
    Candidates stream in live while generating and stay visible until one is committed.
    '''
    if candidates is not None and phase is not Phase.AWAITING_USER_MESSAGE:
        return log.render() + "\n" + candidates.render_all()
    return log.render()


def instruction_for(phase: Phase) -> str:
    return INSTRUCTIONS[phase]
