"""Tests for the CacheStore module."""

from __future__ import annotations

import base64
import re

import pytest

from rak.cache import CacheStore, locator_for_url
from rak.exceptions import CacheError, CacheReadError, CacheWriteError
from rak.models import Locator


@pytest.fixture()
def store(tmp_path, clock):
    """Create a CacheStore rooted at tmp_path with a fake clock."""
    s = CacheStore(tmp_path / "cache", clock=clock)
    yield s
    s.close()


def _decode(value: str) -> str:
    return base64.urlsafe_b64decode(value.encode("ascii")).decode("utf-8")


LOC = Locator(namespace="bmFtZXNwYWNl", key="a2V5")


# ------------------------------------------------------------------ #
# Locators
# ------------------------------------------------------------------ #


class TestLocatorForUrl:
    def test_deterministic(self) -> None:
        assert locator_for_url("https://wttr.in/Oslo") == locator_for_url("https://wttr.in/Oslo")

    def test_components_decode_to_origin_and_path(self) -> None:
        loc = locator_for_url("https://wttr.in/Oslo?format=3")
        assert _decode(loc.namespace) == "https://wttr.in"
        assert _decode(loc.key) == "/Oslo"

    def test_empty_path_is_root(self) -> None:
        assert locator_for_url("https://ifconfig.me") == locator_for_url("https://ifconfig.me/")

    def test_query_string_ignored(self) -> None:
        assert locator_for_url("https://x.org/a?b=1") == locator_for_url("https://x.org/a?b=2")
        assert locator_for_url("https://x.org/a?b=1") == locator_for_url("https://x.org/a")

    def test_port_and_scheme_distinguish_namespaces(self) -> None:
        namespaces = {
            locator_for_url(url).namespace
            for url in ("https://example.com/", "http://example.com/", "https://example.com:8443/")
        }
        assert len(namespaces) == 3

    def test_fragment_ignored(self) -> None:
        assert locator_for_url("https://example.com/a#top") == locator_for_url("https://example.com/a")

    @pytest.mark.parametrize(
        "url",
        ["https://example.com/../../etc/passwd", "https://example.com/a/b/c?x=/y", "https://例え.jp/パス"],
    )
    def test_components_use_filename_safe_alphabet(self, url: str) -> None:
        loc = locator_for_url(url)
        for part in (loc.namespace, loc.key):
            assert re.fullmatch(r"[A-Za-z0-9_\-=]+", part)


# ------------------------------------------------------------------ #
# check / read / write
# ------------------------------------------------------------------ #


class TestCheck:
    def test_missing_namespace(self, store: CacheStore) -> None:
        assert store.check(LOC, 60) == (False, False)

    def test_missing_key_in_existing_namespace(self, store: CacheStore) -> None:
        store.write(LOC, b"x")
        other = Locator(namespace=LOC.namespace, key="b3RoZXI=")
        assert store.check(other, 60) == (False, False)

    def test_fresh_right_after_write(self, store: CacheStore) -> None:
        store.write(LOC, b"x")
        assert store.check(LOC, 60) == (True, True)

    def test_fresh_at_exactly_max_age(self, store: CacheStore, clock) -> None:
        store.write(LOC, b"x")
        clock.advance(60)
        assert store.check(LOC, 60) == (True, True)

    def test_stale_past_max_age(self, store: CacheStore, clock) -> None:
        store.write(LOC, b"x")
        clock.advance(61)
        assert store.check(LOC, 60) == (True, False)

    def test_zero_max_age(self, store: CacheStore, clock) -> None:
        store.write(LOC, b"x")
        assert store.check(LOC, 0) == (True, True)
        clock.advance(1 / 60)
        assert store.check(LOC, 0) == (True, False)

    def test_rewrite_refreshes_timestamp(self, store: CacheStore, clock) -> None:
        store.write(LOC, b"old")
        clock.advance(120)
        store.write(LOC, b"new")
        assert store.check(LOC, 60) == (True, True)

    def test_root_is_a_file(self, tmp_path, clock) -> None:
        root = tmp_path / "file"
        root.write_text("not a directory")
        with CacheStore(root, clock=clock) as s:
            assert s.check(LOC, 60) == (False, False)


class TestReadWrite:
    def test_round_trip_bytes(self, store: CacheStore) -> None:
        body = "Oslo: ⛅ +7°C\n".encode("utf-8") + b"\x00\xff"
        store.write(LOC, body)
        assert store.read(LOC) == body

    def test_overwrite_replaces_content(self, store: CacheStore) -> None:
        store.write(LOC, b"first")
        store.write(LOC, b"second")
        assert store.read(LOC) == b"second"

    def test_empty_content(self, store: CacheStore) -> None:
        store.write(LOC, b"")
        assert store.check(LOC, 60) == (True, True)
        assert store.read(LOC) == b""

    def test_read_missing_raises(self, store: CacheStore) -> None:
        with pytest.raises(CacheReadError):
            store.read(LOC)

    def test_read_error_is_cache_error(self, store: CacheStore) -> None:
        with pytest.raises(CacheError) as exc_info:
            store.read(LOC)
        assert exc_info.value.exit_code == 8

    def test_write_creates_namespace_directory(self, store: CacheStore) -> None:
        store.write(LOC, b"x")
        directory = store.root / LOC.namespace
        assert directory.is_dir()

    def test_stale_entries_are_kept(self, store: CacheStore, clock) -> None:
        store.write(LOC, b"x")
        clock.advance(100_000)
        assert store.read(LOC) == b"x"

    def test_write_fails_when_root_is_a_file(self, tmp_path, clock) -> None:
        root = tmp_path / "file"
        root.write_text("not a directory")
        with CacheStore(root, clock=clock) as s:
            with pytest.raises(CacheWriteError):
                s.write(LOC, b"x")

    def test_persists_across_instances(self, tmp_path, clock) -> None:
        with CacheStore(tmp_path / "c", clock=clock) as first:
            first.write(LOC, b"kept")
        with CacheStore(tmp_path / "c", clock=clock) as second:
            assert second.check(LOC, 60) == (True, True)
            assert second.read(LOC) == b"kept"

    def test_namespaces_are_isolated(self, store: CacheStore) -> None:
        a = locator_for_url("https://a.example/same")
        b = locator_for_url("https://b.example/same")
        store.write(a, b"A")
        store.write(b, b"B")
        assert store.read(a) == b"A"
        assert store.read(b) == b"B"
