"""Configuration data models."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from apislice.utils.constants import (
    DEFAULT_LOADER_TIMEOUT, DEFAULT_NORMALIZER_BATCH_SIZE, DEFAULT_SUBSET_TITLE,
    GRAPH_AUTHORIZATION_URL, GRAPH_TOKEN_URL, GRAPH_URL_TEMPLATE, GRAPH_VERSION_V1,
    SECURITY_SCHEME_NAME
)


class SubsetConfig(BaseModel):
    """Settings for the documents produced by the subset builder."""

    title: str = Field(default=DEFAULT_SUBSET_TITLE, description="Title of generated subset documents")
    graph_version: str = Field(default=GRAPH_VERSION_V1, description="Version written to info and server url")
    authorization_url: str = Field(default=GRAPH_AUTHORIZATION_URL, description="OAuth2 authorization endpoint")
    token_url: str = Field(default=GRAPH_TOKEN_URL, description="OAuth2 token endpoint")
    graph_url_template: str = Field(
        default=GRAPH_URL_TEMPLATE,
        description="Server url template, formatted with the graph version"
    )
    security_scheme_name: str = Field(default=SECURITY_SCHEME_NAME, description="Name of the OAuth2 scheme")

    @field_validator("graph_url_template")
    @classmethod
    def validate_url_template(cls, v):
        """Template must contain exactly one placeholder for the version."""
        if v.count("{}") != 1:
            raise ValueError("graph_url_template must contain exactly one '{}' placeholder")
        return v


class NormalizerConfig(BaseModel):
    """Reference normalizer configuration."""

    batch_size: int = Field(default=DEFAULT_NORMALIZER_BATCH_SIZE, description="Path entries per batch")

    @field_validator("batch_size")
    @classmethod
    def validate_batch_size(cls, v):
        if v < 1:
            raise ValueError("batch_size must be at least 1")
        return v


class LoaderConfig(BaseModel):
    """Source document loading configuration."""

    timeout: int = Field(default=DEFAULT_LOADER_TIMEOUT, description="HTTP timeout in seconds")
    validate_skeleton: bool = Field(default=True, description="Validate the top-level document shape")


class SliceConfig(BaseModel):
    """Main apislice configuration."""

    subset: SubsetConfig = Field(default_factory=SubsetConfig)
    normalizer: NormalizerConfig = Field(default_factory=NormalizerConfig)
    loader: LoaderConfig = Field(default_factory=LoaderConfig)


class ConvertSettings(BaseModel):
    """Settings handed to the metadata to document converter.

    Each output style asks the converter for a slightly different document;
    these are the knobs it turns.
    """

    add_single_quotes_for_string_parameters: bool = True
    add_enum_description_extension: bool = True
    enable_key_as_segment: bool = True
    enable_operation_id: bool = True
    prefix_entity_type_name_before_key: bool = True
    tag_depth: int = 2
    enable_pagination: bool = True
    enable_discriminator_value: bool = False
    enable_derived_types_references_for_request_body: bool = False
    enable_derived_types_references_for_responses: bool = False
    show_root_path: bool = True
    show_links: bool = True
    expand_derived_types_navigation_properties: bool = False


def get_convert_settings(style: Optional[str] = None) -> ConvertSettings:
    """Get converter settings for an output style.

    Args:
        style: Style name (case-insensitive); None for the defaults

    Returns:
        Converter settings
    """
    settings = ConvertSettings()
    if style is None:
        return settings

    name = str(getattr(style, "value", style)).lower()
    if name == "powershell":
        settings.enable_pagination = False
    elif name == "powerplatform":
        settings.tag_depth = 1
    elif name == "geautocomplete":
        settings.expand_derived_types_navigation_properties = True
    return settings
