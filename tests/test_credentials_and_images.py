import base64

import pytest

from omnipost.exceptions import ValidationError
from omnipost.services.credentials import (
    HashedCredentials,
    PlainTextCredentials,
    get_credential_strategy,
)
from omnipost.services.image_service import to_data_uri


def test_plain_credentials_exact_match():
    creds = PlainTextCredentials()
    stored = creds.prepare("p")
    assert stored == "p"
    assert creds.verify(stored, "p")
    assert not creds.verify(stored, "P")
    assert not creds.verify(None, "p")


def test_hashed_credentials():
    creds = HashedCredentials()
    stored = creds.prepare("p")
    assert stored != "p"
    assert creds.verify(stored, "p")
    assert not creds.verify(stored, "q")
    # Records written under the plain scheme do not verify as hashes
    assert not creds.verify("p", "p")


def test_strategy_lookup():
    assert isinstance(get_credential_strategy("plain"), PlainTextCredentials)
    assert isinstance(get_credential_strategy("hashed"), HashedCredentials)
    with pytest.raises(ValueError):
        get_credential_strategy("rot13")


def test_image_becomes_data_uri():
    uri = to_data_uri(b"\x89PNG", "image/png", max_bytes=1024)
    assert uri == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()


@pytest.mark.parametrize(
    "data,content_type",
    [
        (b"%PDF", "application/pdf"),
        (b"", "image/png"),
        (b"x" * 11, "image/jpeg"),
        (b"x", None),
    ],
)
def test_image_rejections(data, content_type):
    with pytest.raises(ValidationError):
        to_data_uri(data, content_type, max_bytes=10)
