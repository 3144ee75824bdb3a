from routine_assistant.assistant.render import DisplayLine, Notice, escape_html, render, render_html
from routine_assistant.domain.conversation import ConversationState
from routine_assistant.domain.models import ChatMessage


def test_escape_html_replaces_all_special_chars():
    assert escape_html("<a href=\"x\">Tom & 'Jerry'</a>") == (
        "&lt;a href=&quot;x&quot;&gt;Tom &amp; &#39;Jerry&#39;&lt;/a&gt;"
    )


def test_render_skips_system_and_interleaves_notices():
    state = ConversationState(
        conversation=[
            ChatMessage(role="system", content="sys"),
            ChatMessage(role="user", content="why?"),
            ChatMessage(role="assistant", content="because"),
        ]
    )
    notices = [
        Notice(position=2, line=DisplayLine(role="assistant", text="between")),
        Notice(position=3, line=DisplayLine(role="assistant", text="after")),
    ]
    lines = render(state, notices)
    assert [line.text for line in lines] == ["why?", "between", "because", "after"]


def test_render_html_treats_chat_content_as_text():
    lines = [
        DisplayLine(role="user", text="<b>bold?</b>"),
        DisplayLine(role="assistant", text="API error: 500 - &lt;script&gt;", markup=True),
    ]
    html = render_html(lines)
    assert "&lt;b&gt;bold?&lt;/b&gt;" in html
    assert "API error: 500 - &lt;script&gt;" in html
    assert "<script>" not in html
    assert '<div class="chat-message chat-user">' in html
