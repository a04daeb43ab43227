"""Textual-based TUI application for browsing conversations."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.widgets import Footer, Header, Input, ListItem, ListView, Markdown, Static

from llm_unify.lib.models import Conversation
from llm_unify.storage.repository import ConversationRepository
from llm_unify.storage.search import SearchEngine
from llm_unify.types import Provider


def conversation_label(conv: Conversation) -> Text:
    stamp = conv.updated_at or conv.created_at
    date_str = stamp.strftime("%Y-%m-%d %H:%M") if stamp else "undated"
    return Text.assemble(
        (conv.title, "bold"),
        "\n",
        (f"{conv.provider} • {conv.message_count} messages • {date_str}", "dim"),
    )


def conversation_markdown(conv: Conversation) -> str:
    lines = [f"# {conv.title}", "", f"**Provider:** {conv.provider}", f"**ID:** {conv.id}"]
    if conv.created_at:
        lines.append(f"**Created:** {conv.created_at.isoformat()}")
    if conv.updated_at:
        lines.append(f"**Updated:** {conv.updated_at.isoformat()}")
    lines += ["", "---", ""]
    for msg in conv.messages:
        lines.append(f"## {msg.role.value.upper()}")
        if msg.timestamp:
            lines.append(f"*{msg.timestamp.isoformat()}*")
        lines += ["", msg.content, ""]
    return "\n".join(lines)


class ConversationList(ListView):
    """Conversations on the left; the selection drives the viewer."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.conversations: list[Conversation] = []
        self.border_title = "Conversations"

    async def show(self, conversations: list[Conversation], title: str) -> None:
        self.conversations = conversations
        self.border_title = title
        await self.clear()
        await self.extend(ListItem(Static(conversation_label(conv))) for conv in conversations)


class ConversationViewer(VerticalScroll):
    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.border_title = "Conversation"

    async def show(self, conv: Conversation) -> None:
        self.border_title = conv.title
        await self.remove_children()
        await self.mount(Markdown(conversation_markdown(conv)))
        self.scroll_home(animate=False)

    async def show_empty(self, message: str = "Select a conversation to view") -> None:
        self.border_title = "Conversation"
        await self.remove_children()
        await self.mount(Static(Text(message, style="dim"), id="empty-state"))


class ConversationBrowser(App[None]):
    """TUI application for browsing the archive.

    Keyboard shortcuts:
        j/k: Navigate list
        /: Search conversations (empty query lists everything)
        Escape: Back to the full list
        q: Quit
    """

    CSS = """
    #search {
        dock: top;
    }

    #conversation-list {
        width: 40%;
        border: solid $primary;
    }

    #conversation-viewer {
        width: 60%;
        border: solid $secondary;
    }

    #empty-state {
        height: 100%;
        content-align: center middle;
    }
    """

    BINDINGS = [
        ("j", "cursor_down", "Down"),
        ("k", "cursor_up", "Up"),
        ("/", "search", "Search"),
        ("escape", "reset", "All"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        repository: ConversationRepository,
        search_engine: SearchEngine,
        provider: Provider | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.repository = repository
        self.search_engine = search_engine
        self.provider = provider

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Input(placeholder="Search conversations…", id="search")
        with Horizontal():
            yield ConversationList(id="conversation-list")
            yield ConversationViewer(id="conversation-viewer")
        yield Footer()

    @property
    def conversation_list(self) -> ConversationList:
        return self.query_one(ConversationList)

    @property
    def conversation_viewer(self) -> ConversationViewer:
        return self.query_one(ConversationViewer)

    async def on_mount(self) -> None:
        await self.load_all()
        self.conversation_list.focus()

    async def load_all(self) -> None:
        conversations = await self.repository.list(self.provider)
        title = f"Conversations ({self.provider})" if self.provider else "Conversations"
        await self.conversation_list.show(conversations, title)
        await self.conversation_viewer.show_empty()

    async def run_search(self, query: str) -> None:
        hits = await self.search_engine.search(query, provider=self.provider)
        conversations = []
        for hit in hits:
            conv = await self.repository.find_by_id(hit.conversation_id)
            if conv is not None:
                conversations.append(conv)
        await self.conversation_list.show(conversations, f"Search: {query} ({len(conversations)})")
        if not conversations:
            await self.conversation_viewer.show_empty("No results")

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        query = event.value.strip()
        if query:
            await self.run_search(query)
        else:
            await self.load_all()
        self.conversation_list.focus()

    async def on_list_view_selected(self, event: ListView.Selected) -> None:
        index = event.list_view.index
        conversations = self.conversation_list.conversations
        if index is not None and 0 <= index < len(conversations):
            await self.conversation_viewer.show(conversations[index])

    def action_cursor_down(self) -> None:
        self.conversation_list.action_cursor_down()

    def action_cursor_up(self) -> None:
        self.conversation_list.action_cursor_up()

    def action_search(self) -> None:
        self.query_one("#search", Input).focus()

    async def action_reset(self) -> None:
        self.query_one("#search", Input).value = ""
        await self.load_all()
        self.conversation_list.focus()


__all__ = ["ConversationBrowser", "conversation_label", "conversation_markdown"]
