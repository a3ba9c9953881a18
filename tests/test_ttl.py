"""Tests for TTL specs and resolution."""

import math

import pytest

from cachemanager import ComputedTTL, FixedTTL, TTLResolutionError, resolve_ttl
from cachemanager.ttl import as_ttl_spec


class TestAsTTLSpec:
    """Tests for normalizing raw TTLs."""

    def test_none_stays_none(self) -> None:
        assert as_ttl_spec(None) is None

    def test_int_becomes_fixed(self) -> None:
        assert as_ttl_spec(500) == FixedTTL(500)

    def test_string_becomes_fixed(self) -> None:
        assert as_ttl_spec("2s") == FixedTTL(2000)

    def test_callable_becomes_computed(self) -> None:
        def ttl_fn(value: str) -> int:
            return len(value)

        spec = as_ttl_spec(ttl_fn)
        assert isinstance(spec, ComputedTTL)
        assert spec.fn is ttl_fn

    def test_spec_passthrough(self) -> None:
        spec = FixedTTL(10)
        assert as_ttl_spec(spec) is spec

    def test_negative_fixed_rejected(self) -> None:
        with pytest.raises(ValueError):
            FixedTTL(-5)


class TestResolveTTL:
    """Tests for resolve_ttl."""

    def test_fixed_returned_unchanged(self) -> None:
        assert resolve_ttl(1500, "value") == 1500
        assert resolve_ttl(FixedTTL(0), "value") == 0

    def test_computed_receives_value(self) -> None:
        assert resolve_ttl(lambda v: len(v) * 1000, "abc") == 3000

    def test_computed_float_truncated(self) -> None:
        assert resolve_ttl(lambda v: 1500.7, "x") == 1500

    def test_omitted_uses_default(self) -> None:
        assert resolve_ttl(None, "x", default=250) == 250

    def test_omitted_without_default_never_expires(self) -> None:
        assert resolve_ttl(None, "x") == 0

    def test_computed_error_wrapped(self) -> None:
        def boom(value: object) -> int:
            raise KeyError("ttl")

        with pytest.raises(TTLResolutionError) as exc_info:
            resolve_ttl(boom, "x")
        assert isinstance(exc_info.value.__cause__, KeyError)

    @pytest.mark.parametrize("bad", [-1, math.inf, math.nan, "10", None, True])
    def test_computed_bad_result(self, bad: object) -> None:
        with pytest.raises(TTLResolutionError):
            resolve_ttl(lambda v: bad, "x")
