import pytest

from tradein.cache import RedisCache
from tradein.decoders import AutoDevDecoder, NhtsaDecoder
from tradein.settings import ServiceSettings
from tradein.vin import VinResolver, build_decoder_chain, sanitize_vin
from tradein.vin_models import EngineInfo, VinDecodeResult


class FakeBackend:
    def __init__(self, name, result=None, exc=None):
        self.name = name
        self.result = result
        self.exc = exc
        self.calls: list[str] = []

    async def decode(self, vin):
        self.calls.append(vin)
        if self.exc is not None:
            raise self.exc
        return self.result(vin) if callable(self.result) else self.result


def _usable(source):
    return lambda vin: VinDecodeResult(vin=vin, year=2003, make="Honda", model="Accord", source=source)


def _failed(*errors):
    return lambda vin: VinDecodeResult(vin=vin, errors=list(errors))


def test_sanitize_strips_and_uppercases():
    assert sanitize_vin("1hg-cm82633a004352") == "1HGCM82633A004352"
    assert sanitize_vin(" 1hg cm8 2633a0 ") == "1HGCM82633A0"


@pytest.mark.asyncio
async def test_invalid_length_short_circuits_before_any_backend():
    backend = FakeBackend("nhtsa", _usable("nhtsa"))
    resolver = VinResolver([backend])
    result = await resolver.decode("1HGC")
    assert result.errors == ["invalid_length"]
    assert result.vin == "1HGC"
    assert backend.calls == []

    too_long = await resolver.decode("1HGCM82633A004352XY")
    assert too_long.errors == ["invalid_length"]
    assert backend.calls == []


@pytest.mark.asyncio
async def test_sanitized_vin_is_dispatched():
    backend = FakeBackend("nhtsa", _usable("nhtsa"))
    result = await VinResolver([backend]).decode("1hg-cm82633a004352")
    assert backend.calls == ["1HGCM82633A004352"]
    assert result.vin == "1HGCM82633A004352"


@pytest.mark.asyncio
async def test_commercial_success_skips_fallback():
    commercial = FakeBackend("autodev", _usable("autodev"))
    fallback = FakeBackend("nhtsa", _usable("nhtsa"))
    result = await VinResolver([commercial, fallback]).decode("1HGCM82633A004352")
    assert result.source == "autodev"
    assert fallback.calls == []


@pytest.mark.asyncio
async def test_commercial_errors_fall_through_to_fallback():
    commercial = FakeBackend("autodev", _failed("autodev_http_503"))
    fallback = FakeBackend("nhtsa", _usable("nhtsa"))
    result = await VinResolver([commercial, fallback]).decode("1HGCM82633A004352")
    assert result.source == "nhtsa"
    assert len(commercial.calls) == 1
    assert len(fallback.calls) == 1


@pytest.mark.asyncio
async def test_commercial_exception_falls_through_to_fallback():
    commercial = FakeBackend("autodev", exc=RuntimeError("bad payload"))
    fallback = FakeBackend("nhtsa", _usable("nhtsa"))
    result = await VinResolver([commercial, fallback]).decode("1HGCM82633A004352")
    assert result.usable
    assert result.source == "nhtsa"


@pytest.mark.asyncio
async def test_result_missing_identity_is_not_accepted():
    commercial = FakeBackend("autodev", lambda vin: VinDecodeResult(vin=vin, year=2003, make="Honda"))
    fallback = FakeBackend("nhtsa", _usable("nhtsa"))
    result = await VinResolver([commercial, fallback]).decode("1HGCM82633A004352")
    assert result.source == "nhtsa"


@pytest.mark.asyncio
async def test_total_failure_returns_fallback_result_verbatim():
    commercial = FakeBackend("autodev", _failed("autodev_error", "timeout"))
    fallback = FakeBackend("nhtsa", _failed("nhtsa_http_502"))
    result = await VinResolver([commercial, fallback]).decode("1HGCM82633A004352")
    assert result.errors == ["nhtsa_http_502"]
    assert result.year is None and result.make is None and result.model is None


@pytest.mark.asyncio
async def test_last_backend_exception_becomes_error_result():
    fallback = FakeBackend("nhtsa", exc=ValueError("Results missing"))
    result = await VinResolver([fallback]).decode("1HGCM82633A004352")
    assert result.errors == ["nhtsa_error", "Results missing"]


@pytest.mark.asyncio
async def test_usable_results_are_cached():
    cache = RedisCache(redis_url="redis://127.0.0.1:1/0")
    backend = FakeBackend(
        "nhtsa",
        lambda vin: VinDecodeResult(
            vin=vin, year=2003, make="Honda", model="Accord",
            engine=EngineInfo(cylinders="6", displacement_l="3.0"), source="nhtsa",
        ),
    )
    resolver = VinResolver([backend], cache=cache, ttl_seconds=60)
    first = await resolver.decode("1HGCM82633A004352")
    second = await resolver.decode("1hgcm82633a004352")
    assert len(backend.calls) == 1
    assert second == first


@pytest.mark.asyncio
async def test_failures_are_not_cached():
    cache = RedisCache(redis_url="redis://127.0.0.1:1/0")
    backend = FakeBackend("nhtsa", _failed("nhtsa_http_500"))
    resolver = VinResolver([backend], cache=cache, ttl_seconds=60)
    await resolver.decode("1HGCM82633A004352")
    await resolver.decode("1HGCM82633A004352")
    assert len(backend.calls) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "entry",
    [
        {"make": "Honda"},
        {"vin": "1HGCM82633A004352", "engine": "V6"},
        {"vin": "1HGCM82633A004352", "errors": ["nhtsa_http_500"]},
    ],
)
async def test_malformed_cache_entry_is_ignored_and_replaced(entry):
    cache = RedisCache(redis_url="redis://127.0.0.1:1/0")
    await cache.set_json("vin_decode:1HGCM82633A004352", entry, ttl_seconds=60)
    backend = FakeBackend("nhtsa", _usable("nhtsa"))
    resolver = VinResolver([backend], cache=cache, ttl_seconds=60)

    result = await resolver.decode("1HGCM82633A004352")

    assert result.usable
    assert backend.calls == ["1HGCM82633A004352"]
    assert VinDecodeResult.from_dict(await cache.get_json("vin_decode:1HGCM82633A004352")) == result


def test_resolver_requires_a_backend():
    with pytest.raises(ValueError):
        VinResolver([])


def test_chain_without_commercial_key_is_fallback_only(monkeypatch):
    monkeypatch.delenv("AUTODEV_API_KEY", raising=False)
    chain = build_decoder_chain(ServiceSettings(_env_file=None))
    assert [type(b) for b in chain] == [NhtsaDecoder]


def test_chain_with_commercial_key_puts_it_first(monkeypatch):
    monkeypatch.setenv("AUTODEV_API_KEY", "secret")
    monkeypatch.setenv("VIN_RETRY_MAX_ATTEMPTS", "5")
    chain = build_decoder_chain(ServiceSettings(_env_file=None))
    assert [type(b) for b in chain] == [AutoDevDecoder, NhtsaDecoder]
    assert all(b.retry.max_attempts == 5 for b in chain)


def test_to_dict_uses_camel_case_and_omits_absent_fields():
    result = VinDecodeResult(
        vin="1HGCM82633A004352", year=2003, make="Honda", model="Accord",
        body_class="Coupe", fuel_type_primary="Gasoline",
        engine=EngineInfo(displacement_l="3.0"),
    )
    assert result.to_dict() == {
        "vin": "1HGCM82633A004352",
        "year": 2003,
        "make": "Honda",
        "model": "Accord",
        "bodyClass": "Coupe",
        "fuelTypePrimary": "Gasoline",
        "engine": {"displacementL": "3.0"},
    }
    assert VinDecodeResult.from_dict(result.to_dict()) == result
