from unittest.mock import patch

from shipbridge.otel import setup_otel


def test_tracing_disabled_by_default(settings):
    settings.OTEL_ENABLED = False

    assert setup_otel() is False


def test_tracing_setup_failure_does_not_raise(settings):
    settings.OTEL_ENABLED = True

    with patch("opentelemetry.sdk.trace.TracerProvider", side_effect=RuntimeError("no exporter")):
        assert setup_otel() is False
