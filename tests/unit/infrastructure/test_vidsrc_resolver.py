"""Tests for VidsrcResolver (full chain over mocked HTTP)."""

from __future__ import annotations

import httpx
import pytest
import respx

from manifestarr.domain.entities.resolution import (
    MediaKind,
    ResolutionErrorKind,
    ResolutionRequest,
    ResolvedStream,
    StageError,
)
from manifestarr.domain.ports.stream_resolver import StreamResolverPort
from manifestarr.infrastructure.config.schema import ResolverConfig
from manifestarr.infrastructure.resolution import (
    HttpxPageFetcher,
    VidsrcResolver,
    build_http_client,
)

_REDIRECT = "https://cloudnestra.com"

_EMBED_HTML = (
    "<html><body><div id='player'>"
    '<iframe id="player_iframe" src="//cloudnestra.com/rcp/MTIzNDU2" '
    'frameborder="0" allowfullscreen></iframe>'
    "</div></body></html>"
)

_RCP_HTML = (
    "<html><head><title>rcp</title></head><body><script>"
    "$('#the_frame').removeAttr('style');"
    "$('#the_frame').html($('<iframe>', {id: 'player_iframe', "
    "src: '/prorcp/ZGVmNDU2', frameborder: 0, scrolling: 'no'}));"
    "</script></body></html>"
)

_ENDPOINT_HTML = (
    "<html><body><script>"
    'var player = new Playerjs({id:"player_parent", '
    'file: "https://tmstr.{v1}/pl/H4sI/master.m3u8 or '
    'https://tmstr2.{v2}/pl/H4sI/master.m3u8", cuid:"c1"});'
    "</script></body></html>"
)

_EMBED_A = "https://mirror-a.example/embed/movie/550"
_EMBED_B = "https://mirror-b.example/embed/movie/550"
_RCP = f"{_REDIRECT}/rcp/MTIzNDU2"
_PRORCP = f"{_REDIRECT}/prorcp/ZGVmNDU2"


async def _resolve(
    config: ResolverConfig, request: ResolutionRequest
) -> ResolvedStream | StageError:
    async with httpx.AsyncClient() as client:
        resolver = VidsrcResolver(HttpxPageFetcher(client), config)
        return await resolver.resolve(request)


class TestVidsrcResolver:
    def test_name_and_port(self, resolver_config: ResolverConfig) -> None:
        resolver = VidsrcResolver(
            HttpxPageFetcher(httpx.AsyncClient()), resolver_config
        )
        assert resolver.name == "vidsrc"
        assert isinstance(resolver, StreamResolverPort)

    @respx.mock
    @pytest.mark.asyncio()
    async def test_full_chain(
        self, resolver_config: ResolverConfig, movie_request: ResolutionRequest
    ) -> None:
        respx.get(_EMBED_A).respond(200, text=_EMBED_HTML)
        rcp_route = respx.get(_RCP).respond(200, text=_RCP_HTML)
        endpoint_route = respx.get(_PRORCP).respond(200, text=_ENDPOINT_HTML)

        result = await _resolve(resolver_config, movie_request)

        assert isinstance(result, ResolvedStream)
        assert result.primary == "https://tmstr.cdn1.example/pl/H4sI/master.m3u8"
        assert result.alternates == (
            "https://tmstr.cdn1.example/pl/H4sI/master.m3u8",
            "https://tmstr.cdn2.example/pl/H4sI/master.m3u8",
            "https://tmstr2.cdn1.example/pl/H4sI/master.m3u8",
            "https://tmstr2.cdn2.example/pl/H4sI/master.m3u8",
        )
        assert result.source == _EMBED_A
        assert rcp_route.calls.last.request.headers["Referer"] == _EMBED_A
        assert (
            endpoint_route.calls.last.request.headers["Referer"]
            == "https://cloudnestra.com/"
        )

    @respx.mock
    @pytest.mark.asyncio()
    async def test_falls_back_to_second_mirror(
        self, resolver_config: ResolverConfig, movie_request: ResolutionRequest
    ) -> None:
        respx.get(_EMBED_A).mock(side_effect=httpx.ConnectError("down"))
        respx.get(_EMBED_B).respond(200, text=_EMBED_HTML)
        respx.get(_RCP).respond(200, text=_RCP_HTML)
        respx.get(_PRORCP).respond(200, text=_ENDPOINT_HTML)

        result = await _resolve(resolver_config, movie_request)

        assert isinstance(result, ResolvedStream)
        assert result.source == _EMBED_B

    @respx.mock
    @pytest.mark.asyncio()
    async def test_direct_manifest_skips_redirect_chain(
        self, resolver_config: ResolverConfig, movie_request: ResolutionRequest
    ) -> None:
        respx.get(_EMBED_A).respond(
            200, text="<script>var f = 'https://cdn.example/x.m3u8';</script>"
        )
        rcp_route = respx.get(_RCP).respond(200, text=_RCP_HTML)
        endpoint_route = respx.get(_PRORCP).respond(200, text=_ENDPOINT_HTML)

        result = await _resolve(resolver_config, movie_request)

        assert result == ResolvedStream(
            primary="https://cdn.example/x.m3u8",
            alternates=("https://cdn.example/x.m3u8",),
            source=_EMBED_A,
        )
        assert not rcp_route.called
        assert not endpoint_route.called
        assert len(respx.calls) == 1

    @respx.mock
    @pytest.mark.asyncio()
    async def test_episode_request(self, resolver_config: ResolverConfig) -> None:
        embed_route = respx.get("https://mirror-a.example/embed/tv/1396/1/2").respond(
            200, text=_EMBED_HTML
        )
        respx.get(_RCP).respond(200, text=_RCP_HTML)
        respx.get(_PRORCP).respond(200, text=_ENDPOINT_HTML)

        result = await _resolve(
            resolver_config,
            ResolutionRequest(media_id="1396", kind=MediaKind.TV, season=1, episode=2),
        )

        assert isinstance(result, ResolvedStream)
        assert embed_route.called

    @respx.mock
    @pytest.mark.asyncio()
    async def test_no_embed_found(
        self, resolver_config: ResolverConfig, movie_request: ResolutionRequest
    ) -> None:
        respx.get(_EMBED_A).respond(404)
        respx.get(_EMBED_B).respond(200, text="<html>nothing useful</html>")

        result = await _resolve(resolver_config, movie_request)

        assert result == StageError(
            ResolutionErrorKind.NO_EMBED_FOUND, "No usable embed page found"
        )

    @respx.mock
    @pytest.mark.asyncio()
    async def test_iframe_not_found(
        self, resolver_config: ResolverConfig, movie_request: ResolutionRequest
    ) -> None:
        # Marker present (so the mirror is accepted) but no rcp iframe.
        respx.get(_EMBED_A).respond(200, text="<a href='https://cloudnestra.com'>x</a>")

        result = await _resolve(resolver_config, movie_request)

        assert isinstance(result, StageError)
        assert result.kind is ResolutionErrorKind.IFRAME_NOT_FOUND

    @respx.mock
    @pytest.mark.asyncio()
    async def test_turnstile_short_circuits(
        self, resolver_config: ResolverConfig, movie_request: ResolutionRequest
    ) -> None:
        respx.get(_EMBED_A).respond(200, text=_EMBED_HTML)
        respx.get(_RCP).respond(
            200, text="<div class='cf-turnstile'></div>" + _RCP_HTML
        )
        endpoint_route = respx.get(_PRORCP).respond(200, text=_ENDPOINT_HTML)

        result = await _resolve(resolver_config, movie_request)

        assert isinstance(result, StageError)
        assert result.kind is ResolutionErrorKind.PROTECTION_DETECTED
        assert not endpoint_route.called

    @respx.mock
    @pytest.mark.asyncio()
    async def test_redirect_network_error_is_not_retried(
        self, resolver_config: ResolverConfig, movie_request: ResolutionRequest
    ) -> None:
        respx.get(_EMBED_A).respond(200, text=_EMBED_HTML)
        rcp_route = respx.get(_RCP).mock(side_effect=httpx.ConnectTimeout("slow"))

        result = await _resolve(resolver_config, movie_request)

        assert isinstance(result, StageError)
        assert result.kind is ResolutionErrorKind.REDIRECT_FETCH_FAILED
        assert rcp_route.call_count == 1

    @respx.mock
    @pytest.mark.asyncio()
    async def test_endpoint_http_error(
        self, resolver_config: ResolverConfig, movie_request: ResolutionRequest
    ) -> None:
        respx.get(_EMBED_A).respond(200, text=_EMBED_HTML)
        respx.get(_RCP).respond(200, text=_RCP_HTML)
        respx.get(_PRORCP).respond(403)

        result = await _resolve(resolver_config, movie_request)

        assert result == StageError(
            ResolutionErrorKind.ENDPOINT_FETCH_FAILED, "Endpoint fetch returned 403"
        )

    @respx.mock
    @pytest.mark.asyncio()
    async def test_endpoint_bare_manifest_fallback(
        self, resolver_config: ResolverConfig, movie_request: ResolutionRequest
    ) -> None:
        respx.get(_EMBED_A).respond(200, text=_EMBED_HTML)
        respx.get(_RCP).respond(200, text=_RCP_HTML)
        respx.get(_PRORCP).respond(
            200, text="<source src=\"https://cdn.example/hls/index.m3u8\">"
        )

        result = await _resolve(resolver_config, movie_request)

        assert isinstance(result, ResolvedStream)
        assert result.primary == "https://cdn.example/hls/index.m3u8"
        assert result.alternates == ("https://cdn.example/hls/index.m3u8",)

    @respx.mock
    @pytest.mark.asyncio()
    async def test_no_resolved_urls(
        self, resolver_config: ResolverConfig, movie_request: ResolutionRequest
    ) -> None:
        respx.get(_EMBED_A).respond(200, text=_EMBED_HTML)
        respx.get(_RCP).respond(200, text=_RCP_HTML)
        respx.get(_PRORCP).respond(
            200, text='new Playerjs({file: "https://cdn.example/movie.mp4"})'
        )

        result = await _resolve(resolver_config, movie_request)

        assert result == StageError(
            ResolutionErrorKind.NO_RESOLVED_URLS, "No resolved .m3u8 URLs found"
        )

    @respx.mock
    @pytest.mark.asyncio()
    async def test_malformed_media_id_falls_through_every_mirror(
        self, resolver_config: ResolverConfig
    ) -> None:
        result = await _resolve(resolver_config, ResolutionRequest(media_id="1\n2"))

        assert result == StageError(
            ResolutionErrorKind.NO_EMBED_FOUND, "No usable embed page found"
        )
        assert len(respx.calls) == 0


class TestSharedClient:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_cookies_do_not_leak_between_resolutions(
        self, resolver_config: ResolverConfig, movie_request: ResolutionRequest
    ) -> None:
        embed_route = respx.get(_EMBED_A).respond(
            200,
            text='<video src="https://cdn.example/x.m3u8"></video>',
            headers={"Set-Cookie": "cf_clearance=abc; Path=/"},
        )

        async with build_http_client(timeout=5.0) as client:
            resolver = VidsrcResolver(HttpxPageFetcher(client), resolver_config)
            first = await resolver.resolve(movie_request)
            second = await resolver.resolve(movie_request)

        assert first == second
        assert embed_route.call_count == 2
        assert "cookie" not in embed_route.calls[1].request.headers
