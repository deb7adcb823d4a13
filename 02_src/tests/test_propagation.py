"""Tests for TraceContextPropagator."""

import pytest

from tracelink.errors import PropagationError
from tracelink.models import TraceContext
from tracelink.propagation import (
    TRACEPARENT_HEADER,
    TRACESTATE_HEADER,
    HeaderGetter,
    TraceContextPropagator,
    parse_traceparent,
)

TRACE_ID_HEX = "4bf92f3577b34da6a3ce929d0e0e4736"
SPAN_ID_HEX = "00f067aa0ba902b7"


class TestExtract:
    """Tests for extract()."""

    def test_extract_sampled_header(self, propagator):
        """Test extracting a well-formed sampled header."""
        ctx = propagator.extract(
            {"traceparent": f"00-{TRACE_ID_HEX}-{SPAN_ID_HEX}-01"}
        )

        assert ctx is not None
        assert ctx.trace_id == int(TRACE_ID_HEX, 16)
        assert ctx.span_id == int(SPAN_ID_HEX, 16)
        assert ctx.trace_id_hex == TRACE_ID_HEX
        assert ctx.span_id_hex == SPAN_ID_HEX
        assert ctx.sampled is True

    def test_extract_unsampled_header(self, propagator):
        """Test that flags 00 yields sampled=False."""
        ctx = propagator.extract(
            {"traceparent": f"00-{TRACE_ID_HEX}-{SPAN_ID_HEX}-00"}
        )
        assert ctx is not None
        assert ctx.sampled is False

    def test_extract_uses_only_sampled_bit(self, propagator):
        """Test that unknown flag bits are ignored."""
        ctx = propagator.extract(
            {"traceparent": f"00-{TRACE_ID_HEX}-{SPAN_ID_HEX}-03"}
        )
        assert ctx is not None
        assert ctx.sampled is True

    def test_extract_header_name_case_insensitive(self, propagator):
        """Test that a plain dict with a capitalized header still works."""
        ctx = propagator.extract(
            {"Traceparent": f"00-{TRACE_ID_HEX}-{SPAN_ID_HEX}-01"}
        )
        assert ctx is not None
        assert ctx.trace_id_hex == TRACE_ID_HEX

    def test_extract_tracestate(self, propagator):
        """Test that tracestate is carried along."""
        ctx = propagator.extract(
            {
                "traceparent": f"00-{TRACE_ID_HEX}-{SPAN_ID_HEX}-01",
                "tracestate": "congo=t61rcWkgMzE",
            }
        )
        assert ctx is not None
        assert ctx.trace_state == "congo=t61rcWkgMzE"

    def test_extract_future_version_with_extra_fields(self, propagator):
        """Test that later versions may append fields."""
        ctx = propagator.extract(
            {"traceparent": f"01-{TRACE_ID_HEX}-{SPAN_ID_HEX}-01-whatever"}
        )
        assert ctx is not None
        assert ctx.trace_id_hex == TRACE_ID_HEX

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "   ",
            "00",
            f"00-{TRACE_ID_HEX}",
            f"00-{TRACE_ID_HEX}-{SPAN_ID_HEX}",
            f"00-{TRACE_ID_HEX}-{SPAN_ID_HEX}-01-extra",
            f"00-{TRACE_ID_HEX[:-1]}-{SPAN_ID_HEX}-01",
            f"00-{TRACE_ID_HEX}-{SPAN_ID_HEX}0-01",
            f"00-{TRACE_ID_HEX}-{SPAN_ID_HEX}-1",
            f"0-{TRACE_ID_HEX}-{SPAN_ID_HEX}-01",
            f"00-{'z' * 32}-{SPAN_ID_HEX}-01",
            f"00-{TRACE_ID_HEX}-{'g' * 16}-01",
            f"00-{TRACE_ID_HEX.upper()}-{SPAN_ID_HEX}-01",
            f"ff-{TRACE_ID_HEX}-{SPAN_ID_HEX}-01",
            f"00-{'0' * 32}-{SPAN_ID_HEX}-01",
            f"00-{TRACE_ID_HEX}-{'0' * 16}-01",
            "not a trace header at all",
        ],
    )
    def test_extract_malformed_returns_none(self, propagator, value):
        """Test that malformed headers yield None instead of raising."""
        assert propagator.extract({"traceparent": value}) is None

    def test_extract_missing_header(self, propagator):
        """Test that an empty carrier yields None."""
        assert propagator.extract({}) is None

    def test_extract_ignores_tracestate_without_traceparent(self, propagator):
        """Test that tracestate alone does not create a context."""
        assert propagator.extract({"tracestate": "a=b"}) is None


class TestInject:
    """Tests for inject()."""

    def test_inject_writes_traceparent(self, propagator):
        """Test the exact header format."""
        ctx = TraceContext(
            trace_id=int(TRACE_ID_HEX, 16), span_id=int(SPAN_ID_HEX, 16), sampled=True
        )
        carrier: dict[str, str] = {}

        propagator.inject(ctx, carrier)

        assert carrier == {
            TRACEPARENT_HEADER: f"00-{TRACE_ID_HEX}-{SPAN_ID_HEX}-01"
        }

    def test_inject_zero_pads_ids(self, propagator):
        """Test that small ids keep their fixed width."""
        carrier: dict[str, str] = {}
        propagator.inject(TraceContext(trace_id=1, span_id=2, sampled=False), carrier)

        assert carrier[TRACEPARENT_HEADER] == f"00-{'0' * 31}1-{'0' * 15}2-00"

    def test_inject_tracestate(self, propagator):
        """Test that non-empty tracestate is written."""
        carrier: dict[str, str] = {}
        propagator.inject(TraceContext(trace_id=1, span_id=2, trace_state="a=b"), carrier)

        assert carrier[TRACESTATE_HEADER] == "a=b"

    def test_inject_skips_invalid_context(self, propagator):
        """Test that an all-zero context is not injected."""
        carrier: dict[str, str] = {}
        propagator.inject(TraceContext(trace_id=0, span_id=0), carrier)

        assert carrier == {}


class TestRoundTrip:
    """Tests for extract(inject(ctx)) == ctx."""

    @pytest.mark.parametrize(
        "ctx",
        [
            TraceContext(trace_id=1, span_id=1, sampled=True),
            TraceContext(trace_id=(1 << 128) - 1, span_id=(1 << 64) - 1, sampled=False),
            TraceContext(
                trace_id=int(TRACE_ID_HEX, 16),
                span_id=int(SPAN_ID_HEX, 16),
                sampled=True,
                trace_state="rojo=00f067aa0ba902b7,congo=t61rcWkgMzE",
            ),
        ],
    )
    def test_round_trip(self, propagator, ctx):
        """Test that injected contexts extract back unchanged."""
        carrier: dict[str, str] = {}
        propagator.inject(ctx, carrier)

        assert propagator.extract(carrier) == ctx

    def test_round_trip_through_tracer_span(self, propagator, tracer):
        """Test a context minted by the tracer survives the trip."""
        span = tracer.start_span("ping")
        carrier: dict[str, str] = {}
        propagator.inject(span.context, carrier)

        assert propagator.extract(carrier) == span.context
        span.end()


class TestParseTraceparent:
    """Tests for the low-level parser."""

    def test_parse_raises_propagation_error(self):
        """Test that the parser itself reports malformed input."""
        with pytest.raises(PropagationError):
            parse_traceparent("00-xyz")

    def test_parse_injected_value(self, propagator):
        """Test that the parser accepts what the propagator writes."""
        ctx = TraceContext(trace_id=42, span_id=7, sampled=True)
        carrier: dict[str, str] = {}
        propagator.inject(ctx, carrier)

        assert parse_traceparent(carrier[TRACEPARENT_HEADER]) == ctx

    def test_parse_rejects_zero_ids(self):
        """Test that all-zero ids are reported as malformed."""
        with pytest.raises(PropagationError):
            parse_traceparent(f"00-{'0' * 32}-{SPAN_ID_HEX}-01")

    def test_parse_tolerates_surrounding_whitespace(self):
        """Test that surrounding whitespace is stripped."""
        ctx = parse_traceparent(f"  00-{TRACE_ID_HEX}-{SPAN_ID_HEX}-01 ")
        assert ctx.span_id_hex == SPAN_ID_HEX

    def test_fields(self):
        """Test the header names the propagator owns."""
        assert TraceContextPropagator().fields == ("traceparent", "tracestate")


class TestHeaderGetter:
    """Tests for the case-insensitive header getter."""

    def test_exact_and_folded_names(self):
        """Test lookups with matching and differently cased names."""
        getter = HeaderGetter()

        assert getter.get({"traceparent": "a"}, "traceparent") == ["a"]
        assert getter.get({"TraceParent": "b"}, "traceparent") == ["b"]
        assert getter.get({}, "traceparent") is None
        assert getter.keys({"x": "1", "y": "2"}) == ["x", "y"]
