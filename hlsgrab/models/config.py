"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_MANIFEST_URL_TEMPLATE = "https://api.redgifs.com/v2/gifs/{id}/hd.m3u8"
DEFAULT_OUTPUT_TEMPLATE = "redgifs_{id}.mp4"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0"
)


class DownloadConfig(BaseModel):
    """A validated configuration model for the application."""

    # Output
    output_dir: str = "."
    output_template: str = DEFAULT_OUTPUT_TEMPLATE
    overwrite: bool = False

    # Manifest resolution
    manifest_url_template: str = DEFAULT_MANIFEST_URL_TEMPLATE

    # Network
    max_workers: int = 4
    max_attempts: int = 3
    base_delay: float = 1.0
    manifest_timeout: float = 10.0
    fragment_timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    referer: str = ""

    # Internal fields not loaded from INI file
    config_path: str = Field(..., repr=False)
    source_urls: list[str] = Field(default_factory=list, repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of concurrent pipelines."""
        if v < 1 or v > 32:
            raise ValueError("Max workers must be between 1 and 32.")
        return v

    @field_validator("max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("Max attempts must be between 1 and 10.")
        return v

    @field_validator("base_delay", "manifest_timeout", "fragment_timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Delays and timeouts must be greater than zero.")
        return v

    @field_validator("output_template")
    @classmethod
    def validate_template(cls, v: str) -> str:
        """Validates the output file name template."""
        if not v:
            raise ValueError("Output template cannot be empty.")
        if ".." in v or v.startswith(("/", "\\")):
            raise ValueError(
                "Output template cannot contain relative '..' or absolute paths."
            )
        if "{id}" not in v:
            raise ValueError("Output template must contain the {id} placeholder.")
        return v

    @field_validator("manifest_url_template")
    @classmethod
    def validate_manifest_template(cls, v: str) -> str:
        if "{id}" not in v:
            raise ValueError("Manifest URL template must contain {id}.")
        if not v.startswith(("http://", "https://")):
            raise ValueError("Manifest URL template must be an HTTP(S) URL.")
        return v

    @model_validator(mode="after")
    def validate_timeouts(self) -> "DownloadConfig":
        """Media fragments are larger than manifests and get at least as long."""
        if self.fragment_timeout < self.manifest_timeout:
            raise ValueError(
                "fragment_timeout cannot be shorter than manifest_timeout."
            )
        return self

    @property
    def extra_headers(self) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if self.referer:
            headers["Referer"] = self.referer
        return headers

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path", "source_urls"}
        return {key for key in cls.model_fields if key not in internal_fields}
