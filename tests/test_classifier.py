"""Tests for mapping FTP replies to filesystem errors."""

from __future__ import annotations

import pytest

from ftpfs import (
    DirectoryNotFound,
    IsFile,
    ObjectNotFound,
    RemoteError,
)
from ftpfs import classifier
from tests.fakes import status_error


class TestStatus:
    """Extracting reply codes."""

    def test_status_of_reply(self) -> None:
        assert classifier.status(status_error("550")) == "550"

    def test_status_follows_causes(self) -> None:
        outer = RemoteError("open failed", path="f")
        outer.__cause__ = status_error("426")
        assert classifier.status(outer) == "426"

    @pytest.mark.parametrize("error", [None, OSError("reset"), ValueError("bad line")])
    def test_non_replies_have_no_status(self, error: BaseException | None) -> None:
        assert classifier.status(error) is None
        if error is not None:
            assert not classifier.is_semantic(error)


class TestClassification:
    """Context dependent translation of 550."""

    def test_file_unavailable_for_file_is_object_not_found(self) -> None:
        error = classifier.file(status_error("550"), "a/b.txt", "open")
        assert isinstance(error, ObjectNotFound)
        assert error.path == "a/b.txt"

    def test_file_unavailable_for_directory_is_directory_not_found(self) -> None:
        error = classifier.directory(status_error("550"), "a", "list")
        assert isinstance(error, DirectoryNotFound)

    def test_other_codes_are_wrapped_with_context(self) -> None:
        original = status_error("530", "not logged in")
        error = classifier.file(original, "a.txt", "remove")
        assert isinstance(error, RemoteError)
        assert "remove failed" in str(error)
        assert error.__cause__ is original

    def test_transport_errors_are_wrapped(self) -> None:
        original = ConnectionResetError("reset by peer")
        error = classifier.directory(original, "a", "rmdir")
        assert isinstance(error, RemoteError)
        assert error.__cause__ is original

    def test_classified_errors_pass_through(self) -> None:
        original = IsFile("a")
        assert classifier.file(original, "a", "mkdir") is original
        assert classifier.wrap(original, "a", "mkdir") is original


class TestBenignClose:
    """Replies to a download that the caller cut short."""

    @pytest.mark.parametrize("code", ["426", "550"])
    def test_abort_replies_are_benign(self, code: str) -> None:
        assert classifier.benign_close(status_error(code))

    @pytest.mark.parametrize("code", ["451", "530"])
    def test_other_replies_are_not(self, code: str) -> None:
        assert not classifier.benign_close(status_error(code))

    def test_transport_errors_are_not(self) -> None:
        assert not classifier.benign_close(ConnectionResetError())

    def test_hangup_after_early_stop_is_benign(self) -> None:
        assert classifier.benign_close(ConnectionResetError(), early=True)
        assert not classifier.benign_close(status_error("451"), early=True)
        assert not classifier.benign_close(ValueError("bad reply"), early=True)


def test_describe_known_and_unknown_codes() -> None:
    assert classifier.describe("550") == "Requested action not taken; file unavailable"
    assert classifier.describe("999") == "Unknown reply 999"
    assert classifier.describe("abc") == "Unknown reply abc"
