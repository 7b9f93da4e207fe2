import pytest

from rtmp2hls.auth import AuthenticationError, Authorizer


@pytest.fixture
def authorizer():
    return Authorizer(["/live/{app}/{username}"])


def test_authorized_patterns(authorizer):
    assert authorizer.authorized_patterns == ["/live/{app}/{username}"]


@pytest.mark.parametrize(
    "tcurl, expected",
    [
        ("rtmp://localhost/live/test/johndoe", True),
        ("rtmp://example.com/live/myapp/alice", True),
        ("rtmp://localhost/stream/test/johndoe", False),
        ("http://localhost/live/test/johndoe", True),
    ],
)
def test_is_authorized(authorizer, tcurl, expected):
    assert authorizer.is_authorized(tcurl) is expected


@pytest.mark.parametrize(
    "tcurl, expected",
    [
        ("rtmp://example.com/live/myapp/alice", {"app": "myapp", "username": "alice"}),
        ("rtmp://localhost/live/test/johndoe", {"app": "test", "username": "johndoe"}),
        ("rtmp://localhost/stream/test/johndoe", None),
    ],
)
def test_extract_variables(authorizer, tcurl, expected):
    assert authorizer.extract_variables(tcurl) == expected


@pytest.mark.parametrize(
    "tcurl",
    [
        "rtmp://localhost/live/test/johndoe",
        "rtmp://example.com/live/myapp/alice",
        "/live/test/johndoe",
        "not-a-url",
    ],
)
def test_path_extraction_through_authorizer(authorizer, tcurl):
    expected = tcurl != "not-a-url"
    assert (authorizer.extract_variables(tcurl) is not None) is expected


def test_first_matching_pattern_wins():
    authorizer = Authorizer(["/live/{username}", "/live/{app}/{username}", "/{a}/{b}/{c}"])
    assert authorizer.extract_variables("rtmp://h/live/x/y") == {"app": "x", "username": "y"}


def test_no_patterns_authorizes_nothing():
    authorizer = Authorizer([])
    assert authorizer.is_authorized("rtmp://localhost/live/test/johndoe") is False
    assert authorizer.extract_variables("rtmp://localhost/live/test/johndoe") is None


def test_validate_matching_username(authorizer):
    assert authorizer.validate_authentication({"username": "johndoe"}, "johndoe") is None


def test_validate_username_mismatch(authorizer):
    with pytest.raises(AuthenticationError, match="does not match"):
        authorizer.validate_authentication({"username": "johndoe"}, "alice")


def test_validate_empty_publishing_name(authorizer):
    with pytest.raises(AuthenticationError, match="empty publishingName"):
        authorizer.validate_authentication({"username": "johndoe"}, "")


def test_validate_without_username_variable(authorizer):
    assert authorizer.validate_authentication({"app": "test"}, "anyone") is None