"""Tests for thicket.errors: the exception hierarchy and conflict reports."""

import pytest

from thicket.errors import (
    BuildError,
    ConfigurationError,
    Conflict,
    ConflictKind,
    MethodNotAllowed,
    SegmentSyntaxError,
    ThicketError,
)


class TestHierarchy:
    @pytest.mark.parametrize("cls", [ConfigurationError, SegmentSyntaxError, BuildError, MethodNotAllowed])
    def test_subclasses_thicket_error(self, cls: type[Exception]) -> None:
        assert issubclass(cls, ThicketError)


class TestConflict:
    def test_str(self) -> None:
        conflict = Conflict(
            kind=ConflictKind.AMBIGUOUS_NAME,
            location="/users",
            message="dynamic segments at the same position use different names: [id], [userId]",
            chains=("/users/[id]", "/users/[userId]"),
        )
        assert str(conflict) == (
            "[ambiguous-name] /users: dynamic segments at the same position use different names:"
            " [id], [userId] (/users/[id], /users/[userId])"
        )

    def test_str_without_chains(self) -> None:
        conflict = Conflict(ConflictKind.DUPLICATE_PATH, "/about", "clash")
        assert str(conflict) == "[duplicate-path] /about: clash"


class TestBuildError:
    def test_message_lists_every_conflict(self) -> None:
        conflicts = (
            Conflict(ConflictKind.SEGMENT_SYNTAX, "/[]", "bad"),
            Conflict(ConflictKind.DUPLICATE_HANDLER, "/a", "twice"),
        )
        exc = BuildError(conflicts)
        lines = str(exc).splitlines()
        assert lines[0] == "Route tree build failed with 2 conflicts:"
        assert lines[1] == "  - [segment-syntax] /[]: bad"
        assert lines[2] == "  - [duplicate-handler] /a: twice"

    def test_singular(self) -> None:
        exc = BuildError((Conflict(ConflictKind.DUPLICATE_PATH, "/", "x"),))
        assert str(exc).startswith("Route tree build failed with 1 conflict:")

    def test_of_kind(self) -> None:
        a = Conflict(ConflictKind.SEGMENT_SYNTAX, "/a", "bad")
        b = Conflict(ConflictKind.DUPLICATE_PATH, "/b", "clash")
        exc = BuildError((a, b))
        assert exc.of_kind(ConflictKind.DUPLICATE_PATH) == (b,)
        assert exc.of_kind(ConflictKind.AMBIGUOUS_NAME) == ()


class TestOtherErrors:
    def test_segment_syntax_error(self) -> None:
        exc = SegmentSyntaxError("[]", "empty parameter name")
        assert exc.segment == "[]"
        assert exc.reason == "empty parameter name"
        assert str(exc) == "Invalid segment '[]': empty parameter name"

    def test_method_not_allowed(self) -> None:
        exc = MethodNotAllowed("PUT", frozenset({"POST", "GET"}))
        assert exc.allowed == frozenset({"GET", "POST"})
        assert str(exc) == "Method PUT not allowed. Allowed methods: GET, POST"

    def test_method_not_allowed_nothing_served(self) -> None:
        assert str(MethodNotAllowed("GET", frozenset())).endswith("Allowed methods: none")
