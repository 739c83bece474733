"""Tests for the quotation request dispatcher against a mocked transport."""

import asyncio
from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio
from structlog.testing import capture_logs

from kisquote.auth import Auth
from kisquote.errors import (
    ApiError,
    AuthUnavailableError,
    ConfigError,
    DecodeError,
    HttpStatusError,
    KisError,
    TransportError,
    UrlBuildError,
)
from kisquote.params import VolumeRankParameter
from kisquote.quote import (
    DAILY_PRICE_PATH,
    PERIODIC_PRICE_PATH,
    VOLUME_RANK_PATH,
    Quote,
    build_url,
)
from kisquote.types import (
    REAL_ENDPOINT,
    VIRTUAL_ENDPOINT,
    Account,
    Environment,
    MarketCode,
    PeriodCode,
    TrId,
)

ACCOUNT = Account(cano="12345678", acnt_prdt_cd="01")

DAILY_BODY = {
    "rt_cd": "0",
    "msg_cd": "MCA00000",
    "msg1": "정상처리 되었습니다.",
    "output": [
        {
            "stck_bsop_date": "20240503",
            "stck_oprc": "77800",
            "stck_hgpr": "78300",
            "stck_lwpr": "76800",
            "stck_clpr": "76700",
            "acml_vol": "13084454",
            "prdy_vrss": "-1600",
            "prdy_vrss_sign": "5",
        }
    ],
}

PERIODIC_BODY = {
    "rt_cd": "0",
    "msg_cd": "MCA00000",
    "msg1": "정상처리 되었습니다.",
    "output1": {"hts_kor_isnm": "삼성전자", "stck_shrn_iscd": "005930", "stck_prpr": "76700"},
    "output2": [
        {
            "stck_bsop_date": "20240503",
            "stck_clpr": "76700",
            "stck_oprc": "77800",
            "stck_hgpr": "78300",
            "stck_lwpr": "76800",
            "acml_vol": "13084454",
        },
        {},
    ],
}

VOLUME_BODY = {
    "rt_cd": "0",
    "msg_cd": "MCA00000",
    "msg1": "정상처리 되었습니다.",
    "output": [
        {
            "hts_kor_isnm": "삼성전자",
            "mksc_shrn_iscd": "005930",
            "data_rank": "1",
            "stck_prpr": "76700",
            "acml_vol": "13084454",
        }
    ],
}


class Recorder:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, status: int = 200, json_body: object = None, content: bytes | None = None):
        self.status = status
        self.json_body = json_body
        self.content = content
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.content is not None:
            return httpx.Response(self.status, content=self.content)
        return httpx.Response(self.status, json=self.json_body)


@pytest_asyncio.fixture
async def client_factory() -> AsyncIterator:
    clients: list[httpx.AsyncClient] = []

    def make(handler) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield make
    for c in clients:
        await c.aclose()


def make_quote(client: httpx.AsyncClient, environment=Environment.VIRTUAL, token="T") -> Quote:
    return Quote(client, environment, Auth("K", "S", token=token), ACCOUNT)


class TestEndpoint:
    def test_real(self):
        quote = make_quote(httpx.AsyncClient(), Environment.REAL)
        assert quote.endpoint_url == "https://openapi.koreainvestment.com:9443"

    def test_virtual(self):
        quote = make_quote(httpx.AsyncClient(), Environment.VIRTUAL)
        assert quote.endpoint_url == "https://openapivts.koreainvestment.com:29443"

    def test_accepts_string_environment(self):
        quote = make_quote(httpx.AsyncClient(), "real")
        assert quote.environment is Environment.REAL


@pytest.mark.asyncio
async def test_daily_price_request_shape(client_factory):
    recorder = Recorder(json_body=DAILY_BODY)
    quote = make_quote(client_factory(recorder))

    result = await quote.daily_price(MarketCode.STOCK, "005930", PeriodCode.DAY, True)

    assert len(recorder.requests) == 1
    request = recorder.requests[0]
    assert request.method == "GET"
    assert request.url.host == "openapivts.koreainvestment.com"
    assert request.url.port == 29443
    assert request.url.path == DAILY_PRICE_PATH
    assert request.url.params.multi_items() == [
        ("FID_COND_MRKT_DIV_CODE", "J"),
        ("FID_INPUT_ISCD", "005930"),
        ("FID_PERIOD_DIV_CODE", "D"),
        ("FID_ORG_ADJ_PRC", "0"),
    ]
    assert result.output[0].stck_clpr == "76700"
    assert result.is_success


@pytest.mark.asyncio
async def test_headers_exact(client_factory):
    recorder = Recorder(json_body=DAILY_BODY)
    quote = make_quote(client_factory(recorder))

    url = build_url(quote.endpoint_url, DAILY_PRICE_PATH, [])
    await quote.send_request(url, TrId.DAILY_PRICE)

    headers = recorder.requests[0].headers
    assert headers["Content-Type"] == "application/json"
    assert headers["Authorization"] == "Bearer T"
    assert headers["appkey"] == "K"
    assert headers["appsecret"] == "S"
    assert headers["tr_id"] == "FHKST01010400"
    assert headers["custtype"] == "P"


@pytest.mark.asyncio
async def test_token_read_at_call_time(client_factory):
    recorder = Recorder(json_body=DAILY_BODY)
    auth = Auth("K", "S", token="first")
    quote = Quote(client_factory(recorder), Environment.REAL, auth, ACCOUNT)

    await quote.daily_price(MarketCode.STOCK, "005930", PeriodCode.DAY, True)
    auth.set_token("second")
    await quote.daily_price(MarketCode.STOCK, "005930", PeriodCode.DAY, True)

    assert recorder.requests[0].headers["Authorization"] == "Bearer first"
    assert recorder.requests[1].headers["Authorization"] == "Bearer second"


@pytest.mark.asyncio
async def test_periodic_price(client_factory):
    recorder = Recorder(json_body=PERIODIC_BODY)
    quote = make_quote(client_factory(recorder), Environment.REAL)

    result = await quote.periodic_price(
        MarketCode.STOCK, "005930", PeriodCode.WEEK, "20240101", "20240503", False
    )

    request = recorder.requests[0]
    assert request.url.host == "openapi.koreainvestment.com"
    assert request.url.path == PERIODIC_PRICE_PATH
    assert request.headers["tr_id"] == "FHKST03010100"
    assert dict(request.url.params) == {
        "FID_COND_MRKT_DIV_CODE": "J",
        "FID_INPUT_ISCD": "005930",
        "FID_INPUT_DATE_1": "20240101",
        "FID_INPUT_DATE_2": "20240503",
        "FID_PERIOD_DIV_CODE": "W",
        "FID_ORG_ADJ_PRC": "1",
    }
    assert result.output1.hts_kor_isnm == "삼성전자"
    # trailing blank row is dropped
    assert len(result.output2) == 1


@pytest.mark.parametrize("environment", [Environment.REAL, Environment.VIRTUAL])
@pytest.mark.asyncio
async def test_volume_rank_always_real_host(client_factory, environment: Environment):
    recorder = Recorder(json_body=VOLUME_BODY)
    quote = make_quote(client_factory(recorder), environment)

    result = await quote.volume_rank(VolumeRankParameter(min_volume=1000))

    request = recorder.requests[0]
    assert str(request.url).startswith(REAL_ENDPOINT + VOLUME_RANK_PATH)
    assert request.headers["tr_id"] == "FHPST01710000"
    assert request.url.params["FID_VOL_CNT"] == "1000"
    assert result.output[0].mksc_shrn_iscd == "005930"


@pytest.mark.asyncio
async def test_non_volume_operations_follow_environment(client_factory):
    recorder = Recorder(json_body=DAILY_BODY)
    quote = make_quote(client_factory(recorder), Environment.VIRTUAL)
    await quote.daily_price(MarketCode.STOCK, "005930", PeriodCode.DAY, True)
    assert str(recorder.requests[0].url).startswith(VIRTUAL_ENDPOINT)


class TestMissingToken:
    @pytest.mark.asyncio
    async def test_empty_token_sends_nothing(self, client_factory):
        recorder = Recorder(json_body=DAILY_BODY)
        quote = make_quote(client_factory(recorder), token="")
        with pytest.raises(AuthUnavailableError):
            await quote.daily_price(MarketCode.STOCK, "005930", PeriodCode.DAY, True)
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_daily_price_sends_nothing(self, client_factory):
        recorder = Recorder(json_body=DAILY_BODY)
        quote = make_quote(client_factory(recorder), token=None)
        with pytest.raises(AuthUnavailableError):
            await quote.daily_price(MarketCode.STOCK, "005930", PeriodCode.DAY, True)
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_periodic_price_sends_nothing(self, client_factory):
        recorder = Recorder(json_body=PERIODIC_BODY)
        quote = make_quote(client_factory(recorder), token=None)
        with pytest.raises(AuthUnavailableError):
            await quote.periodic_price(
                MarketCode.STOCK, "005930", PeriodCode.DAY, "20240101", "20240503", True
            )
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_volume_rank_sends_nothing(self, client_factory):
        recorder = Recorder(json_body=VOLUME_BODY)
        quote = make_quote(client_factory(recorder), token=None)
        with pytest.raises(AuthUnavailableError):
            await quote.volume_rank(VolumeRankParameter())
        assert recorder.requests == []


class TestFailures:
    @pytest.mark.asyncio
    async def test_http_status_error_with_valid_json(self, client_factory):
        recorder = Recorder(status=500, json_body=DAILY_BODY)
        quote = make_quote(client_factory(recorder))
        with pytest.raises(HttpStatusError) as exc:
            await quote.daily_price(MarketCode.STOCK, "005930", PeriodCode.DAY, True)
        assert exc.value.status_code == 500
        assert "rt_cd" in exc.value.body

    @pytest.mark.asyncio
    async def test_forbidden(self, client_factory):
        quote = make_quote(client_factory(Recorder(status=403, content=b"token expired")))
        with pytest.raises(HttpStatusError) as exc:
            await quote.volume_rank(VolumeRankParameter())
        assert exc.value.status_code == 403

    @pytest.mark.asyncio
    async def test_malformed_json(self, client_factory):
        quote = make_quote(client_factory(Recorder(content=b"{not json")))
        with pytest.raises(DecodeError):
            await quote.daily_price(MarketCode.STOCK, "005930", PeriodCode.DAY, True)

    @pytest.mark.asyncio
    async def test_schema_mismatch(self, client_factory):
        body = {"rt_cd": "0", "msg_cd": "MCA00000", "msg1": "ok", "output": "nope"}
        quote = make_quote(client_factory(Recorder(json_body=body)))
        with pytest.raises(DecodeError):
            await quote.daily_price(MarketCode.STOCK, "005930", PeriodCode.DAY, True)

    @pytest.mark.asyncio
    async def test_api_error_envelope(self, client_factory):
        body = {"rt_cd": "1", "msg_cd": "EGW00201", "msg1": "초당 거래건수를 초과하였습니다. "}
        quote = make_quote(client_factory(Recorder(json_body=body)))
        with pytest.raises(ApiError) as exc:
            await quote.daily_price(MarketCode.STOCK, "005930", PeriodCode.DAY, True)
        assert exc.value.msg_cd == "EGW00201"
        assert exc.value.msg1 == "초당 거래건수를 초과하였습니다."

    @pytest.mark.asyncio
    async def test_transport_error(self, client_factory):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        quote = make_quote(client_factory(refuse))
        with pytest.raises(TransportError) as exc:
            await quote.daily_price(MarketCode.STOCK, "005930", PeriodCode.DAY, True)
        assert isinstance(exc.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_corrupt_gzip_body(self, client_factory):
        def corrupt(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"content-encoding": "gzip"}, content=b"not gzip")

        quote = make_quote(client_factory(corrupt))
        with pytest.raises(DecodeError) as exc:
            await quote.daily_price(MarketCode.STOCK, "005930", PeriodCode.DAY, True)
        assert isinstance(exc.value.__cause__, httpx.DecodingError)

    @pytest.mark.asyncio
    async def test_other_request_errors_wrapped(self, client_factory):
        def loop(request: httpx.Request) -> httpx.Response:
            raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)

        quote = make_quote(client_factory(loop))
        with pytest.raises(TransportError) as exc:
            await quote.volume_rank(VolumeRankParameter())
        assert isinstance(exc.value.__cause__, httpx.TooManyRedirects)

    @pytest.mark.asyncio
    async def test_invalid_parameter_sends_nothing(self, client_factory):
        recorder = Recorder(json_body=DAILY_BODY)
        quote = make_quote(client_factory(recorder))
        with pytest.raises(UrlBuildError):
            await quote.daily_price(MarketCode.STOCK, "005\n930", PeriodCode.DAY, True)
        with pytest.raises(UrlBuildError):
            await quote.periodic_price(
                MarketCode.STOCK, "005930", PeriodCode.DAY, "2024-01-01", "20240503", True
            )
        assert recorder.requests == []

    def test_errors_are_distinct(self):
        kinds = [
            AuthUnavailableError,
            UrlBuildError,
            TransportError,
            HttpStatusError,
            DecodeError,
            ApiError,
            ConfigError,
        ]
        assert all(issubclass(k, KisError) for k in kinds)
        assert len(set(kinds)) == len(kinds)


def test_build_url_rejects_control_characters():
    with pytest.raises(UrlBuildError):
        build_url(REAL_ENDPOINT, DAILY_PRICE_PATH, [("FID_INPUT_ISCD", "00\x005930")])


def test_build_url_keeps_order():
    url = build_url(REAL_ENDPOINT, VOLUME_RANK_PATH, [("b", "2"), ("a", "1"), ("c", "")])
    assert url.params.multi_items() == [("b", "2"), ("a", "1"), ("c", "")]


@pytest.mark.asyncio
async def test_concurrent_calls_share_client(client_factory):
    recorder = Recorder(json_body=DAILY_BODY)
    quote = make_quote(client_factory(recorder))

    codes = ["005930", "000660", "035420", "051910"]
    results = await asyncio.gather(
        *(quote.daily_price(MarketCode.STOCK, c, PeriodCode.DAY, True) for c in codes)
    )

    assert len(results) == 4
    sent = sorted(r.url.params["FID_INPUT_ISCD"] for r in recorder.requests)
    assert sent == sorted(codes)


@pytest.mark.asyncio
async def test_rejection_logged_without_credentials(client_factory):
    quote = Quote(
        client_factory(Recorder(status=401, content=b"unauthorized")),
        Environment.REAL,
        Auth("app-key-123", "app-secret-456", token="token-789"),
        ACCOUNT,
    )
    with capture_logs() as logs:
        with pytest.raises(HttpStatusError):
            await quote.daily_price(MarketCode.STOCK, "005930", PeriodCode.DAY, True)

    warnings = [entry for entry in logs if entry["log_level"] == "warning"]
    assert warnings[0]["status"] == 401
    flattened = " ".join(str(v) for entry in logs for v in entry.values())
    for secret in ("app-key-123", "app-secret-456", "token-789"):
        assert secret not in flattened
