"""Frame rendering for every screen.

``build_render_context`` snapshots what the renderer needs from ``AppState``;
``render_screen`` turns that snapshot into a list of terminal lines and
``write_frame`` paints them. Nothing here mutates application state.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

from .ansi import clip_ansi_line, visible_width, word_wrap
from .keymap import (
    FILTER_HELP,
    POLICY_LIST_HELP,
    PROFILE_LIST_HELP,
    ROLE_LIST_HELP,
    SEARCH_HELP,
    VIEWPORT_HELP,
    HelpEntry,
    format_help,
)
from .models import ListItem, item_description, item_title
from .palette import DEFAULT_PALETTE, Palette, paint
from .search import highlight_document
from .state import LIST_ITEM_HEIGHT, AppState, Screen

APP_TITLE = "\N{RAINBOW} AWS Terminal UI \N{RAINBOW}"
SPINNER_FRAMES: tuple[str, ...] = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
ERROR_WRAP_MARGIN = 10

_LIST_TITLES = {
    Screen.ROLES: "AWS IAM Roles",
    Screen.PROFILES: "AWS Profiles",
}


@dataclass(frozen=True)
class RenderContext:
    screen: Screen
    width: int
    height: int
    loading: bool
    error: str | None
    status: str
    profile: str
    identity_arn: str
    list_title: str = ""
    items: tuple[ListItem, ...] = ()
    selected_index: int = 0
    items_per_page: int = 1
    filter_query: str = ""
    filter_editing: bool = False
    policy_name: str = ""
    policy_type: str = ""
    policy_arn: str = ""
    document_text: str = ""
    view_offset: int = 0
    view_height: int = 1
    view_width: int = 80
    search_active: bool = False
    search_query: str = ""
    search_results: tuple[int, ...] = ()
    search_current: int = 0


def build_render_context(state: AppState) -> RenderContext:
    """Return a read-only snapshot of ``state`` for one frame."""
    common = dict(
        screen=state.screen,
        width=state.width,
        height=state.height,
        loading=state.loading,
        error=str(state.error) if state.error is not None else None,
        status=state.status_message,
        profile=state.display_profile,
        identity_arn=state.identity_arn,
    )
    if state.screen is Screen.POLICY_DOCUMENT:
        policy = state.policy()
        search = state.search
        return RenderContext(
            **common,
            policy_name=policy.name if policy else "",
            policy_type=policy.policy_type.label if policy else "",
            policy_arn=policy.arn if policy else "",
            document_text=state.document_text,
            view_offset=state.view_offset,
            view_height=state.view_height,
            view_width=state.view_width,
            search_active=search.active,
            search_query=search.query,
            search_results=tuple(search.results),
            search_current=search.current,
        )

    if state.screen is Screen.POLICIES:
        list_title = f"Policies for {state.selected_role}" if state.selected_role else "Policies"
    else:
        list_title = _LIST_TITLES[state.screen]
    list_filter = state.filters[state.screen]
    return RenderContext(
        **common,
        list_title=list_title,
        items=tuple(state.visible_items()),
        selected_index=state.cursor(),
        items_per_page=state.items_per_page(),
        filter_query=list_filter.query,
        filter_editing=list_filter.editing,
    )


def _profile_badge(context: RenderContext, palette: Palette) -> str:
    return paint(f" Profile: {context.profile} ", palette.profile_badge, palette)


def _header_lines(context: RenderContext, palette: Palette, *, with_logo: bool) -> list[str]:
    badge = _profile_badge(context, palette)
    logo = paint(APP_TITLE, palette.app_title, palette) if with_logo else ""
    spacer = context.width - visible_width(logo) - visible_width(badge) - 2
    if spacer > 0:
        return [logo + " " * spacer + badge]
    if with_logo:
        return [logo, badge]
    return [badge]


def _help_entries(context: RenderContext) -> tuple[HelpEntry, ...]:
    if context.screen is Screen.POLICY_DOCUMENT:
        return SEARCH_HELP if context.search_active else VIEWPORT_HELP
    if context.filter_editing:
        return FILTER_HELP
    if context.screen is Screen.PROFILES:
        return PROFILE_LIST_HELP
    if context.screen is Screen.POLICIES:
        return POLICY_LIST_HELP
    return ROLE_LIST_HELP


def _render_items(context: RenderContext, palette: Palette) -> list[str]:
    if not context.items:
        return ["  " + paint("No items.", palette.item_description, palette)]

    per_page = max(1, context.items_per_page)
    page_start = (context.selected_index // per_page) * per_page
    lines: list[str] = []
    for idx in range(page_start, min(len(context.items), page_start + per_page)):
        item = context.items[idx]
        title = item_title(item)
        description = item_description(item)
        if idx == context.selected_index:
            lines.append(paint("│ ", palette.selected_item, palette) + paint(title, palette.selected_item, palette))
            lines.append(paint("│ ", palette.selected_item, palette) + paint(description, palette.selected_item, palette))
        else:
            lines.append("  " + paint(title, palette.item, palette))
            lines.append("  " + paint(description, palette.item_description, palette))
        lines.extend([""] * (LIST_ITEM_HEIGHT - 2))

    page_count = (len(context.items) + per_page - 1) // per_page
    if page_count > 1:
        page = page_start // per_page + 1
        lines.append("  " + paint(f"{page}/{page_count}", palette.help, palette))
    return lines


def _render_list_body(context: RenderContext, palette: Palette) -> list[str]:
    lines = _header_lines(context, palette, with_logo=True)
    lines.append("")
    lines.append(" " + paint(f" {context.list_title} ", palette.title, palette))
    if context.filter_editing:
        lines.append(" " + paint(f"Filter: {context.filter_query}_", palette.search_prompt, palette))
    elif context.filter_query:
        lines.append(" " + paint(f"Filter: {context.filter_query}", palette.help, palette))
    else:
        lines.append("")
    lines.extend(_render_items(context, palette))
    return lines


def _render_document_body(context: RenderContext, palette: Palette, max_rows: int) -> list[str]:
    lines = _header_lines(context, palette, with_logo=False)
    lines.append("")
    lines.append("  " + paint(context.policy_name, palette.policy_name, palette))
    if context.policy_type:
        lines.append("  " + paint(f"Type: {context.policy_type}", palette.policy_metadata, palette))
    if context.policy_arn:
        lines.append("  " + paint(f"ARN: {context.policy_arn}", palette.policy_metadata, palette))
    lines.append("")

    content = context.document_text
    if context.search_results and context.search_query:
        content = highlight_document(
            content,
            context.search_query,
            list(context.search_results),
            context.search_current,
            palette,
        )
    search_rows = 1 if context.search_active or context.search_results else 0
    rows = max(1, min(context.view_height, max_rows - len(lines) - search_rows))
    if content:
        visible = content.split("\n")[context.view_offset : context.view_offset + rows]
        lines.extend(clip_ansi_line(line, context.view_width) for line in visible)

    if context.search_active:
        lines.append(" " + paint(f"Search: {context.search_query}_", palette.search_prompt, palette))
    elif context.search_results:
        summary = f"Match {context.search_current + 1} of {len(context.search_results)} for '{context.search_query}'"
        lines.append(" " + paint(summary, palette.help, palette))
    return lines


def _render_footer(context: RenderContext, palette: Palette, separator: str) -> list[str]:
    lines: list[str] = []
    if context.status:
        lines.append(paint(context.status, palette.status, palette))
    lines.append(" " + paint(format_help(_help_entries(context), separator), palette.help, palette))
    if context.identity_arn:
        lines.append("")
        lines.append(paint(f" Current user ARN: {context.identity_arn} ", palette.identity_badge, palette))
    return lines


def render_screen(
    context: RenderContext,
    palette: Palette = DEFAULT_PALETTE,
    spinner_frame: int = 0,
    separator: str = " ",
) -> list[str]:
    """Return the frame for ``context`` as a list of terminal lines."""
    if context.loading:
        spinner = SPINNER_FRAMES[spinner_frame % len(SPINNER_FRAMES)]
        return ["", "", f"   {paint(spinner, palette.spinner, palette)} Loading...", "", ""]

    if context.error is not None:
        wrapped = word_wrap(context.error, context.width - ERROR_WRAP_MARGIN).split("\n")
        lines = ["", "", "   Error: " + paint(wrapped[0], palette.error, palette)]
        lines.extend("          " + paint(part, palette.error, palette) for part in wrapped[1:])
        lines.extend(["", ""])
        return lines

    footer = _render_footer(context, palette, separator)
    if context.screen is Screen.POLICY_DOCUMENT:
        body = _render_document_body(context, palette, context.height - len(footer))
    else:
        body = _render_list_body(context, palette)

    padding = context.height - len(body) - len(footer)
    if padding > 0:
        body.extend([""] * padding)
    return [clip_ansi_line(line, context.width) for line in body + footer]


def write_frame(lines: list[str]) -> None:
    """Clear the screen and paint ``lines`` from the top-left corner."""
    out = ["\033[H\033[J", "\r\n".join(lines)]
    os.write(sys.stdout.fileno(), "".join(out).encode("utf-8", errors="replace"))


__all__ = [
    "APP_TITLE",
    "RenderContext",
    "SPINNER_FRAMES",
    "build_render_context",
    "render_screen",
    "write_frame",
]
