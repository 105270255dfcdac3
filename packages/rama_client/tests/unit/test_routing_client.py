"""Unit tests for RamaClient routing and redirect handling."""

from __future__ import annotations

import asyncio
import json
import random

import httpx
import pytest
from rama_client.clients.routing_client import RamaClient
from rama_client.domain.exceptions import (
    InvalidSupervisorLocationsError,
    InvalidURLError,
    MaxRedirectsExceededError,
    MissingLocationHeaderError,
    MissingSupervisorLocationsHeaderError,
    ResponseDecodeError,
    TransportError,
    UnexpectedStatusError,
)
from rama_client.domain.strategies import RandomEndpointSelector

MODULE = "com.example.ProfileModule"
SELECT_PATH = "pstate/$$profiles/select"


def supervisor_url(host: str, port: int) -> str:
    return f"http://{host}:{port}/rest/{MODULE}/{SELECT_PATH}"


@pytest.mark.asyncio
class TestRamaClientExecute:
    """Test cases for RamaClient.execute."""

    @pytest.fixture(autouse=True)
    def _setup(
        self, client_config, topology_cache, scripted_cluster, redirect_response, ok_response
    ) -> None:
        self.config = client_config
        self.cache = topology_cache
        self.Cluster = scripted_cluster
        self.redirect = redirect_response
        self.ok = ok_response

    def make_client(self, cluster, **kwargs) -> RamaClient:
        return RamaClient(
            config=self.config,
            http_client=cluster.http_client(),
            topology_cache=self.cache,
            **kwargs,
        )

    async def test_success_without_redirect(self) -> None:
        """Test a 200 from the entry point is decoded and returned."""
        cluster = self.Cluster([self.ok(["alice", "bob"])])
        client = self.make_client(cluster)

        result = await client.execute(MODULE, SELECT_PATH, ["all"], list[str])

        assert result == ["alice", "bob"]
        assert len(cluster.requests) == 1
        request = cluster.requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"http://entry:2000/rest/{MODULE}/{SELECT_PATH}"
        assert request.headers["content-type"] == "text/plain"
        assert json.loads(request.content) == ["all"]

    async def test_build_url_trims_slashes(self) -> None:
        """Test base, module and operation are joined with single slashes."""
        client = RamaClient(
            "http://entry:2000/", config=self.config, topology_cache=self.cache
        )

        url = client.build_url(f"/{MODULE}", "/depot/*users/append")

        assert str(url) == f"http://entry:2000/rest/{MODULE}/depot/*users/append"

    @pytest.mark.parametrize("k", [1, 2, 4])
    async def test_follows_k_redirects_then_succeeds(self, k: int) -> None:
        """Test k redirects lead to k+1 requests and the last topology is cached."""
        responses = [
            self.redirect(supervisor_url(f"sup{i}", 9000 + i), [f"sup{i}:{9000 + i}"])
            for i in range(k)
        ]
        responses.append(self.ok({"name": "alice"}))
        cluster = self.Cluster(responses)
        client = self.make_client(cluster)

        result = await client.execute(MODULE, SELECT_PATH, ["alice"])

        assert result == {"name": "alice"}
        assert len(cluster.requests) == k + 1
        assert self.cache.lookup(MODULE) == (f"sup{k - 1}:{9000 + k - 1}",)
        assert cluster.hosts[-1] == f"sup{k - 1}:{9000 + k - 1}"

    async def test_redirect_budget_exhausted(self) -> None:
        """Test max_redirects redirects in a row fail without an extra request."""
        cluster = self.Cluster(
            fallback=lambda request: self.redirect(supervisor_url("sup", 9000), ["sup:9000"])
        )
        client = self.make_client(cluster, max_redirects=5)

        with pytest.raises(MaxRedirectsExceededError) as exc_info:
            await client.execute(MODULE, SELECT_PATH, ["alice"])

        assert len(cluster.requests) == 5
        assert exc_info.value.details["max_redirects"] == 5
        assert exc_info.value.error_code == "MAX_REDIRECTS_EXCEEDED"

    async def test_default_budget_comes_from_config(self) -> None:
        """Test the configured max_redirects is used when not overridden."""
        cluster = self.Cluster(
            fallback=lambda request: self.redirect(supervisor_url("sup", 9000), ["sup:9000"])
        )
        client = self.make_client(cluster)

        with pytest.raises(MaxRedirectsExceededError):
            await client.execute(MODULE, SELECT_PATH, [])

        assert client.max_redirects == 5
        assert len(cluster.requests) == 5

    async def test_missing_supervisor_locations_keeps_cache(self) -> None:
        """Test a redirect without topology fails and leaves the old entry alone."""
        self.cache.update(MODULE, ["old:7000"])
        cluster = self.Cluster(
            [httpx.Response(308, headers={"Location": supervisor_url("new", 7001)})]
        )
        client = self.make_client(cluster)

        with pytest.raises(MissingSupervisorLocationsHeaderError) as exc_info:
            await client.execute(MODULE, SELECT_PATH, [])

        assert exc_info.value.details["header"] == "Supervisor-Locations"
        assert self.cache.lookup(MODULE) == ("old:7000",)
        assert cluster.hosts == ["old:7000"]

    async def test_missing_location_header(self) -> None:
        """Test a redirect without Location fails and does not touch the cache."""
        cluster = self.Cluster(
            [httpx.Response(308, headers={"Supervisor-Locations": '["sup:9000"]'})]
        )
        client = self.make_client(cluster)

        with pytest.raises(MissingLocationHeaderError) as exc_info:
            await client.execute(MODULE, SELECT_PATH, [])

        assert exc_info.value.details["header"] == "Location"
        assert self.cache.lookup(MODULE) is None

    async def test_non_ascii_location_is_treated_as_missing(self) -> None:
        """Test header bytes that are not ASCII count as a missing header."""
        cluster = self.Cluster(
            [
                httpx.Response(
                    308,
                    headers=[
                        (b"Location", b"http://sup:9000/rest/\xe9"),
                        (b"Supervisor-Locations", b'["sup:9000"]'),
                    ],
                )
            ]
        )
        client = self.make_client(cluster)

        with pytest.raises(MissingLocationHeaderError) as exc_info:
            await client.execute(MODULE, SELECT_PATH, [])

        assert "non-ASCII" in exc_info.value.details["reason"]
        assert self.cache.lookup(MODULE) is None

    @pytest.mark.parametrize("header_value", ["not json", '{"a": 1}', "[1, 2]", '"sup:1"'])
    async def test_invalid_supervisor_locations(self, header_value: str) -> None:
        """Test topology headers that are not a JSON list of strings are rejected."""
        self.cache.update(MODULE, ["old:7000"])
        cluster = self.Cluster(
            [
                httpx.Response(
                    308,
                    headers={
                        "Location": supervisor_url("sup", 9000),
                        "Supervisor-Locations": header_value,
                    },
                )
            ]
        )
        client = self.make_client(cluster)

        with pytest.raises(InvalidSupervisorLocationsError) as exc_info:
            await client.execute(MODULE, SELECT_PATH, [])

        assert exc_info.value.details["value"] == header_value
        assert self.cache.lookup(MODULE) == ("old:7000",)

    @pytest.mark.parametrize(
        "location",
        [
            "/rest/relative",
            "not a url",
            "//sup:9000/rest",
            "http://sup:99999/rest",
            "http://sup:-1/rest",
            "http://[bad/rest",
            "http://sup:abc/rest",
        ],
    )
    async def test_unusable_location_url(self, location: str) -> None:
        """Test a redirect target that is not an absolute http(s) URL fails."""
        cluster = self.Cluster([self.redirect(location, ["sup:9000"])])
        client = self.make_client(cluster)

        with pytest.raises(InvalidURLError) as exc_info:
            await client.execute(MODULE, SELECT_PATH, [])

        assert exc_info.value.details["header"] == "Location"
        assert self.cache.lookup(MODULE) is None

    async def test_out_of_range_port_not_contacted(self) -> None:
        """Test a Location with an impossible port is never requested."""
        self.cache.update(MODULE, ["old:7000"])
        cluster = self.Cluster(
            [self.redirect(f"http://sup:99999/rest/{MODULE}/{SELECT_PATH}", [])],
            fallback=lambda request: self.ok([]),
        )
        client = self.make_client(cluster)

        with pytest.raises(InvalidURLError, match="outside 1..65535"):
            await client.execute(MODULE, SELECT_PATH, [])

        assert len(cluster.requests) == 1
        assert self.cache.lookup(MODULE) == ("old:7000",)

    async def test_unexpected_status(self) -> None:
        """Test a 500 surfaces with its code, URL and body and is not retried."""
        cluster = self.Cluster([httpx.Response(500, text="boom")])
        client = self.make_client(cluster)

        with pytest.raises(UnexpectedStatusError) as exc_info:
            await client.execute(MODULE, SELECT_PATH, [])

        error = exc_info.value
        assert error.status_code == 500
        assert error.url == f"http://entry:2000/rest/{MODULE}/{SELECT_PATH}"
        assert error.body == "boom"
        assert error.details["redirects_followed"] == 0
        assert len(cluster.requests) == 1

    async def test_unexpected_status_after_redirect(self) -> None:
        """Test the error reports the supervisor URL that actually answered."""
        cluster = self.Cluster(
            [
                self.redirect(supervisor_url("sup", 9000), ["sup:9000"]),
                httpx.Response(404, text="no such pstate"),
            ]
        )
        client = self.make_client(cluster)

        with pytest.raises(UnexpectedStatusError) as exc_info:
            await client.execute(MODULE, SELECT_PATH, [])

        assert exc_info.value.status_code == 404
        assert exc_info.value.url.startswith("http://sup:9000/")
        assert exc_info.value.details["redirects_followed"] == 1

    async def test_decode_failure(self) -> None:
        """Test a body that does not match the expected type is a terminal error."""
        cluster = self.Cluster([self.ok({"not": "an int"})])
        client = self.make_client(cluster)

        with pytest.raises(ResponseDecodeError) as exc_info:
            await client.execute(MODULE, SELECT_PATH, [], int)

        assert exc_info.value.details["expected_type"] == "int"
        assert len(cluster.requests) == 1

    async def test_invalid_json_body(self) -> None:
        """Test a non-JSON 200 body fails to decode."""
        cluster = self.Cluster([httpx.Response(200, text="<html>")])
        client = self.make_client(cluster)

        with pytest.raises(ResponseDecodeError):
            await client.execute(MODULE, SELECT_PATH, [])

    async def test_transport_error_is_not_retried(self) -> None:
        """Test connection failures propagate as TransportError after one attempt."""
        attempts = []

        def refuse(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        client = RamaClient(
            config=self.config,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)),
            topology_cache=self.cache,
        )

        with pytest.raises(TransportError) as exc_info:
            await client.execute(MODULE, SELECT_PATH, [])

        assert "connection refused" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert len(attempts) == 1

    async def test_empty_cache_entry_uses_entry_point(self) -> None:
        """Test an empty cached list behaves like no entry."""
        self.cache.update(MODULE, [])
        cluster = self.Cluster([self.ok([])])
        client = self.make_client(cluster)

        await client.execute(MODULE, SELECT_PATH, [])

        assert cluster.hosts == ["entry:2000"]

    async def test_unparsable_cached_supervisor_falls_back(self) -> None:
        """Test a cached location without a port is skipped for the current URL."""
        self.cache.update(MODULE, ["no-port-here"])
        cluster = self.Cluster([self.ok([])])
        client = self.make_client(cluster)

        await client.execute(MODULE, SELECT_PATH, [])

        assert cluster.hosts == ["entry:2000"]

    async def test_cached_supervisor_keeps_path_and_scheme(self) -> None:
        """Test only host and port are replaced by the cached supervisor."""
        self.cache.update(MODULE, ["sup:9000"])
        cluster = self.Cluster([self.ok([])])
        client = self.make_client(cluster)

        await client.execute(MODULE, SELECT_PATH, [])

        assert str(cluster.requests[0].url) == supervisor_url("sup", 9000)

    async def test_random_selection_covers_cached_supervisors(self) -> None:
        """Test repeated calls reach every cached supervisor and nothing else."""
        supervisors = ["sup-a:9001", "sup-b:9002"]
        self.cache.update(MODULE, supervisors)
        cluster = self.Cluster(fallback=lambda request: self.ok([]))
        client = self.make_client(cluster, selector=RandomEndpointSelector(random.Random(1234)))

        for _ in range(50):
            await client.execute(MODULE, SELECT_PATH, [])

        assert set(cluster.hosts) == set(supervisors)

    async def test_concurrent_operations_share_topology(self) -> None:
        """Test concurrent calls all succeed and converge on the cached supervisor."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "entry":
                return self.redirect(supervisor_url("sup", 9000), ["sup:9000"])
            return self.ok(["value"])

        cluster = self.Cluster(fallback=handler)
        client = self.make_client(cluster)

        results = await asyncio.gather(
            *(client.execute(MODULE, SELECT_PATH, [], list[str]) for _ in range(20))
        )

        assert results == [["value"]] * 20
        assert self.cache.lookup(MODULE) == ("sup:9000",)
        assert all(
            host == "sup:9000" for host in cluster.hosts if not host.startswith("entry")
        )

    async def test_cache_is_per_module(self) -> None:
        """Test a redirect for one module does not route another module."""
        cluster = self.Cluster(
            [
                self.redirect(supervisor_url("sup", 9000), ["sup:9000"]),
                self.ok([]),
                self.ok([]),
            ]
        )
        client = self.make_client(cluster)

        await client.execute(MODULE, SELECT_PATH, [])
        await client.execute("com.example.OtherModule", SELECT_PATH, [])

        assert cluster.hosts[-1] == "entry:2000"
        assert self.cache.lookup("com.example.OtherModule") is None


@pytest.mark.asyncio
class TestRamaClientConstruction:
    """Test cases for RamaClient construction and lifecycle."""

    @pytest.mark.parametrize(
        "base_url",
        [
            "not a url",
            "ftp://entry:2000",
            "entry:2000/rest",
            "http://entry:99999",
            "http://entry:-1",
            "http://entry:0",
            "http://[bad:2000",
        ],
    )
    async def test_invalid_base_url(self, base_url: str, client_config, topology_cache) -> None:
        """Test a base URL that is not absolute http(s) fails fast."""
        with pytest.raises(InvalidURLError):
            RamaClient(base_url, config=client_config, topology_cache=topology_cache)

    async def test_bracketed_ipv6_base_url(self, client_config, topology_cache) -> None:
        client = RamaClient(
            "http://[::1]:2000", config=client_config, topology_cache=topology_cache
        )

        assert client.build_url(MODULE, SELECT_PATH).host == "::1"

    @pytest.mark.parametrize("module", ["", "/", "a/b", "has space", "q?x", "frag#x"])
    async def test_invalid_module_name(
        self, module: str, client_config, topology_cache, scripted_cluster
    ) -> None:
        """Test a malformed module name fails before any request is sent."""
        cluster = scripted_cluster()
        client = RamaClient(
            config=client_config,
            http_client=cluster.http_client(),
            topology_cache=topology_cache,
        )

        with pytest.raises(InvalidURLError):
            await client.execute(module, SELECT_PATH, [])

        assert cluster.requests == []

    async def test_max_redirects_must_be_positive(self, client_config, topology_cache) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            RamaClient(config=client_config, topology_cache=topology_cache, max_redirects=0)

    async def test_from_config(self, client_config, topology_cache) -> None:
        """Test from_config takes the base URL from the configuration."""
        client = RamaClient.from_config(client_config, topology_cache=topology_cache)

        assert str(client.base_url).startswith("http://entry:2000")
        assert client.topology_cache is topology_cache

    async def test_uses_process_wide_cache_by_default(self, client_config) -> None:
        from rama_client.infrastructure.cache import get_topology_cache

        client = RamaClient(config=client_config)

        assert client.topology_cache is get_topology_cache()

    async def test_injected_http_client_is_not_closed(
        self, client_config, topology_cache, scripted_cluster
    ) -> None:
        """Test the context manager leaves a caller-owned httpx client open."""
        http_client = scripted_cluster().http_client()

        async with RamaClient(
            config=client_config, http_client=http_client, topology_cache=topology_cache
        ):
            pass

        assert not http_client.is_closed
        await http_client.aclose()
