"""Unit tests for the AUR RPC client."""

from __future__ import annotations

import logging
from typing import Any
from unittest.mock import Mock, patch

import pytest
import requests

from aurplan.config import Settings
from aurplan.models import RemotePackage
from aurplan.rpc import AURClient, RemoteServiceError, RemoteWarnings


def _record(name: str, **kwargs: Any) -> dict[str, Any]:
    record = {"Name": name, "PackageBase": name, "Version": "1.0-1", "Maintainer": "someone", "OutOfDate": None}
    record.update(kwargs)
    return record


def _session(*payloads: Any) -> Mock:
    session = Mock()
    session.headers = {}
    responses = []
    for payload in payloads:
        response = Mock()
        response.json.return_value = payload
        responses.append(response)
    session.responses = responses
    session.get.side_effect = responses
    return session


def _results(*records: dict[str, Any]) -> dict[str, Any]:
    return {"version": 5, "type": "multiinfo", "resultcount": len(records), "results": list(records)}


class TestAURClient:
    """Tests for AURClient."""

    def test_info(self) -> None:
        """Test a single info request."""
        session = _session(_results(_record("yay", Depends=["pacman>6.1", "git"])))
        client = AURClient("https://aur.example/rpc", timeout=5.0, session=session)

        packages = client.info(["yay"])

        assert packages == [RemotePackage(name="yay", package_base="yay", version="1.0-1",
                                          depends=("pacman>6.1", "git"), maintainer="someone")]
        session.get.assert_called_once_with(
            "https://aur.example/rpc",
            params={"v": 5, "type": "info", "arg[]": ["yay"]},
            timeout=5.0,
        )
        assert session.headers["Accept"] == "application/json"

    def test_info_chunks(self) -> None:
        """Test that large queries are split, in sorted order."""
        session = _session(_results(_record("a"), _record("b")), _results(_record("c")))
        client = AURClient(chunk_size=2, session=session)

        packages = client.info(["c", "a", "b"])

        assert [pkg.name for pkg in packages] == ["a", "b", "c"]
        assert session.get.call_count == 2
        assert session.get.call_args_list[0].kwargs["params"]["arg[]"] == ["a", "b"]
        assert session.get.call_args_list[1].kwargs["params"]["arg[]"] == ["c"]

    def test_info_strips_constraints(self) -> None:
        """Test that version constraints are not sent."""
        session = _session(_results(_record("foo")))
        client = AURClient(session=session)

        client.info(["foo>=1.0", "foo"])

        assert session.get.call_args.kwargs["params"]["arg[]"] == ["foo"]

    def test_info_empty(self) -> None:
        """Test that nothing is requested for no names."""
        session = _session()
        client = AURClient(session=session)

        assert client.info([]) == []
        session.get.assert_not_called()

    def test_search(self) -> None:
        """Test the search request."""
        session = _session(_results(_record("jdk-bin", Provides=["java-environment=17"])))
        client = AURClient(session=session)

        packages = client.search("java")

        assert packages[0].provides == ("java-environment=17",)
        assert session.get.call_args.kwargs["params"] == {"v": 5, "type": "search", "by": "name-desc", "arg": "java"}

    def test_error_response(self) -> None:
        """Test that an RPC error is raised."""
        session = _session({"version": 5, "type": "error", "resultcount": 0, "results": [],
                            "error": "Too many package results."})
        client = AURClient(session=session)

        with pytest.raises(RemoteServiceError, match="Too many package results"):
            client.search("a")

    def test_connection_error(self) -> None:
        """Test that network errors are wrapped."""
        session = _session()
        session.get.side_effect = requests.ConnectionError("refused")
        client = AURClient(session=session)

        with pytest.raises(RemoteServiceError, match="refused"):
            client.info(["foo"])

    def test_http_error(self) -> None:
        """Test that HTTP errors are wrapped."""
        session = _session(_results())
        session.responses[0].raise_for_status.side_effect = requests.HTTPError("503 Server Error")
        client = AURClient(session=session)

        with pytest.raises(RemoteServiceError, match="503"):
            client.info(["foo"])

    def test_invalid_json(self) -> None:
        """Test that undecodable responses are wrapped."""
        session = _session(None)
        session.responses[0].json.side_effect = ValueError("Expecting value")
        client = AURClient(session=session)

        with pytest.raises(RemoteServiceError, match="invalid response"):
            client.info(["foo"])

    def test_unexpected_payload(self) -> None:
        """Test that payloads of the wrong shape are rejected."""
        client = AURClient(session=_session(["foo"]))
        with pytest.raises(RemoteServiceError, match="unexpected response"):
            client.info(["foo"])

        client = AURClient(session=_session({"type": "multiinfo", "results": {"Name": "foo"}}))
        with pytest.raises(RemoteServiceError, match="malformed results"):
            client.info(["foo"])

    def test_malformed_record(self) -> None:
        """Test that records without a version are rejected."""
        client = AURClient(session=_session(_results({"Name": "foo"})))

        with pytest.raises(RemoteServiceError, match="malformed package record"):
            client.info(["foo"])

    def test_warnings(self) -> None:
        """Test that missing, orphaned and out of date packages are recorded."""
        session = _session(_results(_record("orphan", Maintainer=None), _record("stale", OutOfDate=1700000000)))
        client = AURClient(session=session)

        client.info(["orphan", "stale", "gone"])

        assert client.warnings == RemoteWarnings(missing={"gone"}, orphans={"orphan"}, out_of_date={"stale"})

    def test_invalid_chunk_size(self) -> None:
        """Test that the chunk size must be positive."""
        with pytest.raises(ValueError, match="chunk_size"):
            AURClient(chunk_size=0, session=_session())

    @patch("aurplan.rpc.Session")
    def test_from_settings(self, session_cls: Mock) -> None:
        """Test creating a client from settings."""
        session_cls.return_value.headers = {}
        settings = Settings(rpc_url="https://aur.example/rpc", rpc_timeout=3.0, rpc_chunk_size=10)

        client = AURClient.from_settings(settings)

        assert client.url == "https://aur.example/rpc"
        assert client.timeout == 3.0
        assert client.chunk_size == 10
        assert client.session is session_cls.return_value


class TestRemoteWarnings:
    """Tests for RemoteWarnings."""

    def test_empty(self) -> None:
        assert not RemoteWarnings()

    def test_log(self, caplog: pytest.LogCaptureFixture) -> None:
        warnings = RemoteWarnings(missing={"b", "a"}, orphans={"c"})
        with caplog.at_level(logging.WARNING, logger="aurplan.rpc"):
            warnings.log()
        assert "Missing AUR packages: a b" in caplog.text
        assert "Orphaned AUR packages: c" in caplog.text
        assert "out of date" not in caplog.text


@pytest.mark.integration
def test_real_aur() -> None:
    client = AURClient()
    packages = client.info(["yay", "this-package-does-not-exist-aurplan"])
    assert [pkg.name for pkg in packages] == ["yay"]
    assert "this-package-does-not-exist-aurplan" in client.warnings.missing
