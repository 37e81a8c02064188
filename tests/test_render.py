from __future__ import annotations

import unittest
from unittest import mock

from atui import render
from atui.ansi import strip_ansi, visible_width
from atui.errors import FetchError
from atui.models import Policy, PolicyType, ProfileSet, Role
from atui.navigation import initial_state
from atui.palette import DEFAULT_PALETTE, PLAIN_PALETTE
from atui.render import SPINNER_FRAMES, build_render_context, render_screen
from atui.search import find_matching_lines
from atui.state import AppState, Screen

POLICY_ARN = "arn:aws:iam::aws:policy/AmazonS3ReadOnlyAccess"
DOCUMENT = '{\n  "Statement": [\n    {\n      "Action": "s3:Get*",\n      "Resource": "s3:::*"\n    }\n  ]\n}'


def _roles_state() -> AppState:
    state = initial_state("dev")
    state.roles = {
        name: Role(name=name, arn=f"arn:aws:iam::123456789012:role/{name}", description=f"{name} role")
        for name in ("admin", "deployer", "auditor")
    }
    return state


def _document_state() -> AppState:
    state = _roles_state()
    state.policies[POLICY_ARN] = Policy(
        name="AmazonS3ReadOnlyAccess",
        arn=POLICY_ARN,
        policy_type=PolicyType.AWS_MANAGED,
        role_name="admin",
        document=DOCUMENT,
        document_loaded=True,
    )
    state.selected_role = "admin"
    state.selected_policy = POLICY_ARN
    state.screen = Screen.POLICY_DOCUMENT
    state.document_text = DOCUMENT
    state.status_message = ""
    return state


def _render(state: AppState, palette=PLAIN_PALETTE, spinner_frame: int = 0) -> list[str]:
    return render_screen(build_render_context(state), palette, spinner_frame)


class LoadingAndErrorRenderTests(unittest.TestCase):
    def test_loading_view_shows_spinner_frame(self) -> None:
        state = _roles_state()
        state.loading = True

        lines = _render(state, spinner_frame=1)

        self.assertEqual(len(lines), 5)
        self.assertEqual(lines[2], f"   {SPINNER_FRAMES[1]} Loading...")

    def test_error_view_wraps_with_hanging_indent(self) -> None:
        state = _roles_state()
        state.width = 40
        state.error = FetchError("error listing policies for role admin: an AccessDenied error occurred")

        lines = _render(state)

        self.assertTrue(lines[2].startswith("   Error: error listing"))
        continuation = [line for line in lines[3:] if line]
        self.assertTrue(continuation)
        for line in continuation:
            self.assertTrue(line.startswith(" " * 10))
            self.assertLessEqual(len(line.strip()), 30)
        joined = " ".join(line.strip() for line in lines if line.strip())
        self.assertIn("an AccessDenied error occurred", joined)


class ListRenderTests(unittest.TestCase):
    def test_roles_screen_layout(self) -> None:
        state = _roles_state()
        state.identity_arn = "arn:aws:iam::123456789012:user/alice"

        lines = _render(state)

        self.assertEqual(len(lines), state.height)
        self.assertIn("AWS Terminal UI", lines[0])
        self.assertTrue(lines[0].endswith(" Profile: dev "))
        self.assertIn("AWS IAM Roles", lines[2])
        self.assertIn("│ admin", lines)
        self.assertIn("│ admin role", lines)
        self.assertIn("  deployer", lines)
        self.assertEqual(lines[-1], " Current user ARN: arn:aws:iam::123456789012:user/alice ")
        self.assertTrue(any("enter select role" in line for line in lines))

    def test_default_chain_shows_default_profile(self) -> None:
        state = _roles_state()
        state.profiles = ProfileSet(names=("default", "prod"), current="")
        state.screen = Screen.PROFILES

        lines = _render(state)

        self.assertTrue(lines[0].endswith(" Profile: default "))
        self.assertIn("│ default (current)", lines)
        self.assertIn("  prod", lines)

    def test_paging_shows_only_the_cursor_page(self) -> None:
        state = _roles_state()
        state.height = 14
        state.list_height = 5
        state.cursors[Screen.ROLES] = 2

        lines = _render(state)

        self.assertIn("│ auditor", lines)
        self.assertNotIn("  admin", lines)
        self.assertIn("  3/3", lines)

    def test_filter_line_and_empty_results(self) -> None:
        state = _roles_state()
        state.filters[Screen.ROLES].query = "zzz"
        state.filters[Screen.ROLES].editing = True

        lines = _render(state)

        self.assertIn(" Filter: zzz_", lines)
        self.assertIn("  No items.", lines)
        self.assertTrue(any("enter apply filter" in line for line in lines))

    def test_policy_list_title_and_type_label(self) -> None:
        state = _document_state()
        state.screen = Screen.POLICIES
        state.roles["admin"].policy_keys = [POLICY_ARN]
        state.roles["admin"].policies_loaded = True

        lines = _render(state)

        self.assertIn("Policies for admin", lines[2])
        self.assertIn("│ \N{PAGE FACING UP} AmazonS3ReadOnlyAccess", lines)
        self.assertIn("│ [AWS Managed] AmazonS3ReadOnlyAccess", lines)


class DocumentRenderTests(unittest.TestCase):
    def test_metadata_and_viewport(self) -> None:
        state = _document_state()

        lines = _render(state)

        self.assertIn("  AmazonS3ReadOnlyAccess", lines)
        self.assertIn("  Type: AWS Managed", lines)
        self.assertIn(f"  ARN: {POLICY_ARN}", lines)
        self.assertIn('      "Action": "s3:Get*",', lines)

    def test_viewport_starts_at_offset(self) -> None:
        state = _document_state()
        state.view_offset = 3

        lines = _render(state)

        self.assertNotIn('  "Statement": [', lines)
        self.assertIn('      "Action": "s3:Get*",', lines)

    def test_search_prompt_and_match_summary(self) -> None:
        state = _document_state()
        state.search.open_prompt()
        state.search.type_char("s")
        self.assertIn(" Search: s_", _render(state))

        state.search.type_char("3")
        state.search.active = False
        state.search.run(state.document_text)
        lines = _render(state)

        self.assertEqual(state.search.results, find_matching_lines(DOCUMENT, "s3"))
        self.assertIn(" Match 1 of 2 for 's3'", lines)

    def test_long_document_never_exceeds_terminal_height(self) -> None:
        state = _document_state()
        state.document_text = "\n".join(f'  "line{idx}": {idx},' for idx in range(200))
        state.height = 20
        state.view_height = 40
        state.status_message = "Loading policy document for X..."
        state.search.query = "line1"
        state.search.run(state.document_text)

        lines = _render(state)

        self.assertEqual(len(lines), 20)
        self.assertTrue(lines[-2].startswith("Loading policy document"))

    def test_colored_frame_fits_width(self) -> None:
        state = _document_state()
        state.width = 50
        state.view_width = 50
        state.identity_arn = "arn:aws:iam::123456789012:assumed-role/very-long-role-name/session"
        state.search.query = "s3"
        state.search.run(state.document_text)

        lines = _render(state, DEFAULT_PALETTE)

        for line in lines:
            self.assertLessEqual(visible_width(line), 50)
        self.assertIn('"Action": "s3:Get*",', "\n".join(strip_ansi(line) for line in lines))


class WriteFrameTests(unittest.TestCase):
    def test_frame_clears_screen_and_joins_with_crlf(self) -> None:
        writes: list[bytes] = []

        def capture(_fd: int, data: bytes) -> int:
            writes.append(data)
            return len(data)

        with mock.patch.object(render, "sys") as sys_mock, mock.patch("atui.render.os.write", side_effect=capture):
            sys_mock.stdout.fileno.return_value = 1
            render.write_frame(["one", "two"])

        self.assertEqual(b"".join(writes), b"\x1b[H\x1b[Jone\r\ntwo")


if __name__ == "__main__":
    unittest.main()
