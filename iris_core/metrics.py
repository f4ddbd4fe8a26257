"""
OTP Metrics
===========
Prometheus counters for issuance, verification, rate limiting and email
delivery.
"""

from prometheus_client import CollectorRegistry, Counter, generate_latest

# Private registry so embedding services can mount it wherever they like
IRIS_REGISTRY = CollectorRegistry()

OTP_ISSUED_TOTAL = Counter(
    name="iris_otp_issued_total",
    documentation="Total number of OTP codes issued",
    registry=IRIS_REGISTRY,
)

OTP_VERIFICATIONS_TOTAL = Counter(
    name="iris_otp_verifications_total",
    documentation="OTP verification attempts by outcome",
    labelnames=["status"],
    registry=IRIS_REGISTRY,
)

OTP_RATE_LIMITED_TOTAL = Counter(
    name="iris_otp_rate_limited_total",
    documentation="OTP requests refused by the rate tracker",
    labelnames=["reason"],
    registry=IRIS_REGISTRY,
)

EMAIL_SENDS_TOTAL = Counter(
    name="iris_email_sends_total",
    documentation="Email send attempts by outcome",
    labelnames=["provider", "status"],
    registry=IRIS_REGISTRY,
)


def record_issued() -> None:
    OTP_ISSUED_TOTAL.inc()


def record_verification(status: str) -> None:
    OTP_VERIFICATIONS_TOTAL.labels(status=status).inc()


def record_rate_limited(reason: str) -> None:
    OTP_RATE_LIMITED_TOTAL.labels(reason=reason).inc()


def record_email_send(provider: str, success: bool) -> None:
    EMAIL_SENDS_TOTAL.labels(
        provider=provider,
        status="success" if success else "failure",
    ).inc()


def get_metrics_text() -> bytes:
    """Render all iris metrics in Prometheus exposition format."""
    return generate_latest(IRIS_REGISTRY)
