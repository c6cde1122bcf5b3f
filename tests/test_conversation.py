import pytest

from pickchat.conversation import ConversationLog, Message


def test_render_keeps_append_order_and_each_message_once():
    log = ConversationLog()
    texts = ["be brief", "hi", "hello there", "and again", "ok"]
    roles = ["system", "user", "assistant", "user", "assistant"]
    for role, text in zip(roles, texts):
        log.append(role, text)

    out = log.render()
    positions = [out.index(f"[{r}] {t}") for r, t in zip(roles, texts)]
    assert positions == sorted(positions)
    for r, t in zip(roles, texts):
        assert out.count(f"[{r}] {t}\n") == 1


def test_user_text_is_trimmed():
    log = ConversationLog()
    msg = log.append("user", "   hello  \n")
    assert msg == Message("user", "hello")


def test_assistant_text_kept_verbatim():
    log = ConversationLog()
    log.append("assistant", "  indented\n")
    assert log.messages[0].text == "  indented\n"


def test_unknown_role_rejected():
    with pytest.raises(ValueError):
        ConversationLog().append("tool", "x")


def test_messages_are_immutable():
    msg = ConversationLog().append("user", "x")
    with pytest.raises(AttributeError):
        msg.text = "y"


def test_render_is_deterministic():
    log = ConversationLog()
    assert log.render() == ""
    log.append("user", "a")
    assert log.render() == log.render()
    assert len(log) == 1
