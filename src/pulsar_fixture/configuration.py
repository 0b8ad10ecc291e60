"""Immutable description of a Pulsar fixture."""

from pydantic import BaseModel, ConfigDict, Field


def parse_image_tag(image: str) -> str:
    """Return the tag of an image reference, defaulting to ``latest``.

    A colon only starts a tag when it comes after the last slash, so the port
    in ``localhost:5000/pulsar`` is not mistaken for one. Digest references
    carry no tag.
    """
    if "@" in image:
        return "latest"
    name = image.rsplit("/", 1)[-1]
    if ":" not in name:
        return "latest"
    return name.rsplit(":", 1)[1] or "latest"


def parse_image_repository(image: str) -> str:
    """Return the image reference without its tag."""
    if "@" in image:
        return image
    prefix, _, name = image.rpartition("/")
    name = name.split(":", 1)[0]
    return f"{prefix}/{name}" if prefix else name


class PulsarConfiguration(BaseModel):
    """Everything needed to create and control one Pulsar container.

    ``authentication_enabled`` and ``functions_worker_enabled`` are
    tri-state: ``None`` means the caller never chose, which is not the same
    as an explicit ``False``.
    """

    image: str
    authentication_enabled: bool | None = None
    functions_worker_enabled: bool | None = None
    environment: dict[str, str] = Field(default_factory=dict)
    labels: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def image_tag(self) -> str:
        return parse_image_tag(self.image)
