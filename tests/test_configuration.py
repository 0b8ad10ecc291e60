"""Tests for PulsarConfiguration and image tag parsing."""

import pytest
from pydantic import ValidationError

from pulsar_fixture.configuration import (
    PulsarConfiguration,
    parse_image_repository,
    parse_image_tag,
)


@pytest.mark.parametrize(
    ("image", "tag"),
    [
        ("apachepulsar/pulsar:3.2.1", "3.2.1"),
        ("apachepulsar/pulsar", "latest"),
        ("localhost:5000/apachepulsar/pulsar", "latest"),
        ("localhost:5000/apachepulsar/pulsar:3.3.0", "3.3.0"),
        ("apachepulsar/pulsar@sha256:abc123", "latest"),
        ("pulsar:latest-foo", "latest-foo"),
    ],
)
def test_parse_image_tag(image, tag):
    assert parse_image_tag(image) == tag


@pytest.mark.parametrize(
    ("image", "repository"),
    [
        ("apachepulsar/pulsar:3.2.1", "apachepulsar/pulsar"),
        ("apachepulsar/pulsar", "apachepulsar/pulsar"),
        ("pulsar:latest", "pulsar"),
        ("localhost:5000/apachepulsar/pulsar:3.3.0", "localhost:5000/apachepulsar/pulsar"),
        ("localhost:5000/pulsar", "localhost:5000/pulsar"),
        ("apachepulsar/pulsar@sha256:abc123", "apachepulsar/pulsar@sha256:abc123"),
    ],
)
def test_parse_image_repository(image, repository):
    assert parse_image_repository(image) == repository


def test_configuration_is_frozen():
    configuration = PulsarConfiguration(image="apachepulsar/pulsar:3.0.6")

    with pytest.raises(ValidationError):
        configuration.authentication_enabled = True


def test_flags_default_to_unset():
    configuration = PulsarConfiguration(image="apachepulsar/pulsar:3.0.6")

    assert configuration.authentication_enabled is None
    assert configuration.functions_worker_enabled is None
    assert configuration.image_tag == "3.0.6"
