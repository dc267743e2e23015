"""Textual host for the highlight review session.

The app owns no review logic of its own: key bindings call into
``SessionController``, the returned intents are carried out as tracked
background tasks, and their results come back as inbound session messages.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import httpx
from textual import on
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.css.query import NoMatches
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Header, Input, Label, OptionList

from highlight_review.action_messages import (
    build_actionable_error,
    build_archive_all_confirmation_prompt,
    build_end_of_feed_notification,
    build_http_error,
    build_integration_notification,
    build_lifecycle_notification,
    build_snooze_all_confirmation_prompt,
    build_store_error,
)
from highlight_review.config import get_db_path, resolve_readwise_token
from highlight_review.io_actions import copy_to_clipboard, open_url
from highlight_review.messages import (
    AppendBatch,
    ExpandBatch,
    InboundMessage,
    Intent,
    LoadBatch,
    LoadingStopped,
    RequestExpand,
    RequestIntegrationExport,
    RequestLoad,
    RequestMore,
    RequestOpenUrl,
    RequestSearch,
    RequestSnooze,
    RequestStatusChange,
    SearchBatch,
)
from highlight_review.modals import ConfirmModal
from highlight_review.models import (
    MODE_SEARCH,
    SLOT_EXPAND,
    SLOT_LOAD,
    SLOT_SEARCH,
    STATUS_ARCHIVED,
    HighlightItem,
    UserConfig,
)
from highlight_review.services.feed_service import select_review_page, sort_by_recency
from highlight_review.services.interfaces import AppServices, build_default_app_services
from highlight_review.session import SessionController
from highlight_review.themes import TEXTUAL_THEME, THEME_NAME
from highlight_review.ui_constants import APP_BINDINGS, APP_CSS
from highlight_review.widgets import (
    HighlightDetails,
    HighlightList,
    render_status_line,
    set_ascii_icons,
)

logger = logging.getLogger(__name__)


class HighlightReviewApp(App):
    """Keyboard-driven triage of reading highlights."""

    TITLE = "Highlight Review"

    CSS = APP_CSS

    BINDINGS = APP_BINDINGS

    # Keys drive the session directly; the query field takes focus only when shown
    AUTO_FOCUS = None

    def __init__(
        self,
        config: UserConfig | None = None,
        *,
        db_path: Path | None = None,
        services: AppServices | None = None,
        token: str | None = None,
        copy_fn: Callable[[str], bool] = copy_to_clipboard,
        open_url_fn: Callable[[str], bool] = open_url,
        save_config_fn: Callable[[UserConfig], bool] | None = None,
        snooze_weeks: int | None = None,
        ascii_icons: bool | None = None,
    ) -> None:
        super().__init__()
        # Register the theme so $th-* CSS variables resolve before compose()
        self.register_theme(TEXTUAL_THEME)
        self.theme = THEME_NAME
        self._config = config or UserConfig()
        self._db_path = db_path or get_db_path()
        self._services: AppServices = services or build_default_app_services()
        self._token = token if token is not None else resolve_readwise_token(self._config)
        self._copy_fn = copy_fn
        self._open_url_fn = open_url_fn
        self._save_config_fn = save_config_fn
        # Per-run overrides stay out of the persisted config
        if snooze_weeks is None:
            snooze_weeks = self._config.snooze_duration_weeks
        self.session = SessionController(snooze_weeks=snooze_weeks)

        # Provider cache, newest first
        self._all_items: list[HighlightItem] = []
        # Ids acted on since the last full load; kept out of scroll pages
        self._locally_hidden: set[str] = set()
        self._background_tasks: set[asyncio.Task[None]] = set()
        self._http_client: httpx.AsyncClient | None = None
        set_ascii_icons(self._config.ascii_icons if ascii_icons is None else ascii_icons)

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-container"):
            with Vertical(id="left-pane"):
                yield Label(" Highlights", id="list-header")
                with Vertical(id="query-container"):
                    yield Input(placeholder=" Search highlights... (Enter)", id="query-input")
                yield HighlightList(id="highlight-list")
                yield Label("", id="status-bar")
            with Vertical(id="right-pane"):
                yield Label(" Details", id="details-header")
                with VerticalScroll(id="details-scroll", can_focus=False):
                    yield HighlightDetails(id="details")

    def on_mount(self) -> None:
        # Shared HTTP client for connection pooling
        self._http_client = httpx.AsyncClient()
        self._run(self.session.request_load())
        logger.debug("App mounted: db=%s, page_size=%d", self._db_path, self._config.page_size)

    async def on_unmount(self) -> None:
        """Cancel background work, close the HTTP client and persist config."""
        pending = [task for task in self._background_tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            _, still_pending = await asyncio.wait(pending, timeout=0.5)
            for task in still_pending:
                logger.debug("Background task did not cancel before shutdown: %r", task)
        self._background_tasks.clear()

        client = self._http_client
        self._http_client = None
        if client is not None:
            try:
                await client.aclose()
            except Exception as e:
                logger.debug("Failed to close shared HTTP client: %s", e, exc_info=True)

        if self._save_config_fn is not None:
            self._save_config_fn(self._config)

    def _track_task(self, coro: Any) -> asyncio.Task[None]:
        """Create an asyncio task and track it to prevent garbage collection."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in background task: %s", exc, exc_info=exc)

    # ========================================================================
    # Session plumbing
    # ========================================================================

    def _run(self, intents: Sequence[Intent]) -> None:
        """Render the new session state, then carry out its intents."""
        self._render_session()
        self._perform(intents)

    def _apply(self, message: InboundMessage) -> None:
        """Feed a response into the session."""
        was_at_end = self.session.state.has_reached_end
        intents = self.session.dispatch(message)
        if isinstance(message, AppendBatch) and self.session.state.has_reached_end:
            if not was_at_end:
                self.notify(build_end_of_feed_notification(), title="Review")
        self._run(intents)

    def _stop_loading(self, slot: str, token: int) -> None:
        """Clear the loading flag unless a newer request owns the slot."""
        if self.session.current_token(slot) == token:
            self._apply(LoadingStopped(slot=slot))

    def _perform(self, intents: Iterable[Intent]) -> None:
        for intent in intents:
            if isinstance(intent, RequestLoad):
                self._track_task(self._load_page(intent.token, append=False))
            elif isinstance(intent, RequestMore):
                self._track_task(self._load_page(intent.token, append=True))
            elif isinstance(intent, RequestSearch):
                self._track_task(self._run_search(intent))
            elif isinstance(intent, RequestExpand):
                self._track_task(self._run_expand(intent))
            elif isinstance(intent, RequestStatusChange):
                self._locally_hidden.update(intent.ids)
                self._track_task(self._persist_status(intent))
            elif isinstance(intent, RequestSnooze):
                self._locally_hidden.update(intent.ids)
                self._track_task(self._persist_snooze(intent))
            elif isinstance(intent, RequestOpenUrl):
                if not self._open_url_fn(intent.url):
                    self.notify(
                        build_actionable_error(
                            "open the highlight",
                            why="the system browser could not be launched",
                            next_step="copy the URL from the details pane",
                        ),
                        title="Open",
                        severity="error",
                    )
            elif isinstance(intent, RequestIntegrationExport):
                copied = self._copy_fn(intent.text)
                self.notify(
                    build_integration_notification(intent.count, copied),
                    title="Integrate",
                    severity="information" if copied else "warning",
                )

    # ========================================================================
    # Rendering
    # ========================================================================

    def _render_session(self) -> None:
        snapshot = self.session.snapshot()
        try:
            self.query_one("#highlight-list", HighlightList).show_snapshot(snapshot)
            self.query_one("#details", HighlightDetails).show_snapshot(snapshot)
            self.query_one("#status-bar", Label).update(render_status_line(snapshot))
            header = "Search results" if snapshot.mode == MODE_SEARCH else "Highlights"
            self.query_one("#list-header", Label).update(f" {header} ({len(snapshot.items)})")
            container = self.query_one("#query-container", Vertical)
        except NoMatches:
            return
        container.set_class(snapshot.query_input_visible, "visible")
        if not snapshot.query_input_visible and self._query_input_focused():
            self.set_focus(None)

    def _query_input_focused(self) -> bool:
        focused = self.focused
        return isinstance(focused, Input) and focused.id == "query-input"

    # ========================================================================
    # Background work
    # ========================================================================

    def _notify_missing_token(self) -> None:
        self.notify(
            build_actionable_error(
                "load highlights",
                why="no Readwise access token is configured",
                next_step="set readwise_token in the config file or export READWISE_TOKEN",
            ),
            title="Readwise",
            severity="error",
            timeout=10,
        )

    async def _refresh_provider_cache(self) -> None:
        """Fetch the export (incrementally once the cache is warm)."""
        updated_after = self._config.last_fetch if self._all_items else None
        fetched_at = datetime.now(UTC).isoformat(timespec="seconds")
        fresh = await self._services.readwise.fetch_export(
            client=self._http_client, token=self._token, updated_after=updated_after or None
        )
        merged = {item.id: item for item in self._all_items}
        merged.update((item.id, item) for item in fresh)
        self._all_items = sort_by_recency(merged.values())
        self._config.last_fetch = fetched_at
        logger.debug("Provider cache holds %d highlight(s)", len(self._all_items))

    async def _with_snooze_counts(self, items: list[HighlightItem]) -> list[HighlightItem]:
        if not items:
            return items
        counts = await self._services.lifecycle.fetch_snooze_counts(
            db_path=self._db_path, ids=[item.id for item in items]
        )
        return [replace(item, snooze_count=counts.get(item.id, 0)) for item in items]

    async def _load_page(self, token: int, *, append: bool) -> None:
        """Serve the next page of visible highlights."""
        if not self._token:
            self._notify_missing_token()
            self._stop_loading(SLOT_LOAD, token)
            return
        try:
            if not append or not self._all_items:
                await self._refresh_provider_cache()
            visible = await self._services.lifecycle.sync_visible_ids(
                db_path=self._db_path, ids=[item.id for item in self._all_items]
            )
        except (httpx.HTTPError, OSError) as exc:
            logger.warning("Highlight fetch failed: %s", exc, exc_info=True)
            self.notify(
                build_http_error("load highlights", exc, retry_step="press r to retry"),
                title="Readwise",
                severity="error",
                timeout=8,
            )
            self._stop_loading(SLOT_LOAD, token)
            return

        if append:
            exclude = {item.id for item in self.session.state.items} | self._locally_hidden
        else:
            exclude = set()
            self._locally_hidden = set()
        page = select_review_page(self._all_items, visible, exclude, self._config.page_size)
        page = await self._with_snooze_counts(page)
        if append:
            self._apply(AppendBatch(items=tuple(page), token=token))
        else:
            self._apply(LoadBatch(items=tuple(page), token=token))

    async def _run_search(self, intent: RequestSearch) -> None:
        if not self._config.search_url:
            self.notify(
                build_actionable_error(
                    "search highlights",
                    why="no search backend is configured",
                    next_step="set search_url in the config file",
                ),
                title="Search",
                severity="error",
            )
            self._stop_loading(SLOT_SEARCH, intent.token)
            return
        try:
            results = await self._services.search.search_highlights(
                client=self._http_client,
                search_url=self._config.search_url,
                token=self._token,
                query=intent.query,
                limit=self._config.page_size,
            )
        except (httpx.HTTPError, OSError) as exc:
            logger.warning("Search failed: %s", exc, exc_info=True)
            self.notify(
                build_http_error("search highlights", exc, retry_step="search again with /"),
                title="Search",
                severity="error",
                timeout=8,
            )
            self._stop_loading(SLOT_SEARCH, intent.token)
            return
        results = await self._with_snooze_counts(results)
        self._apply(SearchBatch(items=tuple(results), token=intent.token))

    async def _run_expand(self, intent: RequestExpand) -> None:
        if not self._token:
            self._notify_missing_token()
            self._stop_loading(SLOT_EXPAND, intent.token)
            return
        try:
            book_id = intent.book_id
            if book_id is None and intent.highlight_id is not None:
                book_id = await self._services.readwise.fetch_highlight_book_id(
                    client=self._http_client, token=self._token, highlight_id=intent.highlight_id
                )
            if book_id is None:
                self.notify(
                    "Could not find the source of this highlight.",
                    title="Expand",
                    severity="warning",
                )
                self._stop_loading(SLOT_EXPAND, intent.token)
                return
            items = await self._services.readwise.fetch_book_highlights(
                client=self._http_client, token=self._token, book_id=book_id
            )
        except (httpx.HTTPError, OSError) as exc:
            logger.warning("Source expansion failed: %s", exc, exc_info=True)
            self.notify(
                build_http_error("expand the source", exc, retry_step="press E to retry"),
                title="Expand",
                severity="error",
                timeout=8,
            )
            self._stop_loading(SLOT_EXPAND, intent.token)
            return
        items = await self._with_snooze_counts(items)
        self._apply(
            ExpandBatch(items=tuple(items), anchor_id=intent.anchor_id, token=intent.token)
        )

    async def _persist_status(self, intent: RequestStatusChange) -> None:
        ok = await self._services.lifecycle.persist_status(
            db_path=self._db_path, ids=intent.ids, status=intent.status
        )
        if not ok:
            verb = "archive" if intent.status == STATUS_ARCHIVED else "integrate"
            self.notify(build_store_error(f"{verb} highlights"), severity="error", timeout=8)
        elif intent.status == STATUS_ARCHIVED:
            self.notify(build_lifecycle_notification("Archived", len(intent.ids)), title="Archive")

    async def _persist_snooze(self, intent: RequestSnooze) -> None:
        ok = await self._services.lifecycle.persist_snooze(
            db_path=self._db_path, ids=intent.ids, weeks=intent.duration_weeks
        )
        if not ok:
            self.notify(build_store_error("snooze highlights"), severity="error", timeout=8)
        else:
            self.notify(build_lifecycle_notification("Snoozed", len(intent.ids)), title="Snooze")

    # ========================================================================
    # Actions
    # ========================================================================

    def action_cursor_up(self) -> None:
        self._run(self.session.move_up())

    def action_cursor_down(self) -> None:
        self._run(self.session.move_down())

    def action_prev_group(self) -> None:
        self._run(self.session.prev_group())

    def action_next_group(self) -> None:
        self._run(self.session.next_group())

    def action_cursor_first(self) -> None:
        self._run(self.session.move_first())

    def action_cursor_last(self) -> None:
        self._run(self.session.move_last())

    def action_toggle_check(self) -> None:
        self._run(self.session.toggle_focused())

    def action_toggle_group(self) -> None:
        self._run(self.session.toggle_focused_group())

    def action_integrate(self) -> None:
        self._run(self.session.integrate())

    def action_snooze(self) -> None:
        self._run(self.session.snooze())

    def action_archive(self) -> None:
        self._run(self.session.archive())

    def action_open_url(self) -> None:
        intents = self.session.open_url()
        if not intents and self.session.state.focused_id is not None:
            self.notify("This highlight has no link.", title="Open", severity="warning")
        self._run(intents)

    def action_show_query(self) -> None:
        self._run(self.session.show_query())
        try:
            self.query_one("#query-input", Input).focus()
        except NoMatches:
            pass

    def action_escape(self) -> None:
        self.set_focus(None)
        self._run(self.session.escape())

    def action_search_similar(self) -> None:
        self._run(self.session.search_similar())

    def action_expand_source(self) -> None:
        self._run(self.session.expand())

    def action_reload(self) -> None:
        self._run(self.session.request_load())

    def action_snooze_all(self) -> None:
        count = len(self.session.displayed)
        if not count:
            return

        def _on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                self._run(self.session.snooze_all())

        prompt = build_snooze_all_confirmation_prompt(count, self.session.snooze_weeks)
        self.push_screen(ConfirmModal(prompt, action_label="Snooze all"), _on_confirm)

    def action_archive_all(self) -> None:
        count = len(self.session.displayed)
        if not count:
            return

        def _on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                self._run(self.session.archive_all())

        modal = ConfirmModal(
            build_archive_all_confirmation_prompt(count), action_label="Archive all", final=True
        )
        self.push_screen(modal, _on_confirm)

    # ========================================================================
    # Events
    # ========================================================================

    @on(Input.Submitted, "#query-input")
    def on_query_submitted(self, event: Input.Submitted) -> None:
        query = event.value
        event.input.value = ""
        self.set_focus(None)
        self._run(self.session.submit_search(query))

    @on(OptionList.OptionSelected, "#highlight-list")
    def on_highlight_clicked(self, event: OptionList.OptionSelected) -> None:
        if event.option.id is not None:
            self._run(self.session.click(event.option.id))

    def on_key(self, event: Key) -> None:
        """Dispatch the user-configurable lifecycle keys."""
        if self._query_input_focused() or isinstance(self.screen, ModalScreen):
            return
        handlers = {
            self._config.snooze_key: self.action_snooze,
            self._config.archive_key: self.action_archive,
            self._config.open_url_key: self.action_open_url,
        }
        handler = handlers.get(event.key)
        if handler is None:
            return
        event.prevent_default()
        event.stop()
        handler()


__all__ = ["HighlightReviewApp"]
