"""Configuration for the Dyn QPS check.

Every field can be given directly (the CLI does) or through the environment
with the DYN_QPS_ prefix, e.g. DYN_QPS_PASSWORD, so credentials can stay off
the command line.

Thresholds:
- CRITICAL: p95 QPS >= critical (typically the committed query allotment)
- WARNING: p95 QPS >= warning
- OK: otherwise
"""

from enum import StrEnum

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings

from dyn_qps.errors import InvalidConfigurationError

DEFAULT_API_URL = "https://api2.dynect.net/REST/"


class Period(StrEnum):
    """Reporting period, looking back from now."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def seconds(self) -> int:
        return _PERIOD_SECONDS[self]


_PERIOD_SECONDS: dict[Period, int] = {
    Period.DAY: 86400,
    Period.WEEK: 604800,
    Period.MONTH: 2592000,
}


class CheckConfig(BaseSettings):
    """Immutable settings for one check run."""

    url: str = Field(default=DEFAULT_API_URL, description="Dyn REST API base URL")
    customer: str = Field(min_length=1, description="Dyn customer name")
    user: str = Field(min_length=1, description="Dyn user name")
    password: SecretStr = Field(description="Dyn password")

    period: Period = Field(description="Period of time to query")
    critical: float = Field(
        allow_inf_nan=False,
        description="Critical threshold, e.g. the committed QPS allotment",
    )
    warning: float = Field(
        allow_inf_nan=False, description="Warning threshold, close to the allotment"
    )

    retries: int = Field(
        default=50,
        ge=0,
        description="Redirects (301/302/307) to follow before giving up on the report",
    )
    retry_delay_sec: float = Field(
        default=5.0,
        ge=0,
        allow_inf_nan=False,
        description="Fixed wait after each redirected request",
    )
    timeout_sec: float = Field(
        default=30.0, gt=0, allow_inf_nan=False, description="Per-request HTTP timeout"
    )

    model_config = {"env_prefix": "DYN_QPS_", "frozen": True}

    @field_validator("url")
    @classmethod
    def _require_tls(cls, value: str) -> str:
        if not value.lower().startswith("https://"):
            raise ValueError("the Dyn API is only served over https")
        return value

    @property
    def base_url(self) -> str:
        """API URL with exactly one trailing slash, ready for endpoint joins."""
        return self.url.rstrip("/") + "/"

    @classmethod
    def load(cls, **values: object) -> "CheckConfig":
        """Build a config from explicit values, falling back to the environment.

        None values are treated as not given.

        Raises:
            InvalidConfigurationError: a value is missing or invalid.
        """
        given = {key: value for key, value in values.items() if value is not None}
        try:
            return cls(**given)
        except ValidationError as e:
            raise InvalidConfigurationError(_describe(e)) from e


def _describe(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "config"
        if field == "period" and item["type"] != "missing":
            problems.append("Valid options for period are day, week or month")
        else:
            problems.append(f"{field}: {item['msg']}")
    return "Invalid configuration: " + "; ".join(problems)
