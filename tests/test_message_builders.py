import json

import pytest

from bayeux.errors import (
    BadConnectionTypeError,
    BadConnectionVersionError,
    EmptyCollectionError,
    InvalidChannelError,
    MissingClientIDError,
    MissingConnectionTypeError,
    NoSupportedConnectionTypesError,
    NoVersionError,
)
from bayeux.message import CONNECTION_TYPE_LONG_POLLING
from bayeux.message_builders import (
    ConnectRequestBuilder,
    DisconnectRequestBuilder,
    HandshakeRequestBuilder,
    SubscribeRequestBuilder,
    UnsubscribeRequestBuilder,
)

CLIENT_ID = "Un1q31d3nt1f13r"


def _encode(messages):
    return json.dumps([m.to_dict() for m in messages], separators=(",", ":"))


@pytest.mark.parametrize("ct", ["long-polling", "callback-polling", "iframe"])
def test_add_supported_connection_type_valid(ct):
    b = HandshakeRequestBuilder()
    b.add_supported_connection_type(ct)
    b.add_version("1.0")
    assert b.build()[0].supported_connection_types == [ct]


def test_add_supported_connection_type_invalid():
    b = HandshakeRequestBuilder()
    with pytest.raises(BadConnectionTypeError):
        b.add_supported_connection_type("invalid-polling")


def test_supported_connection_types_deduplicated():
    b = HandshakeRequestBuilder()
    b.add_supported_connection_type("long-polling")
    b.add_supported_connection_type("iframe")
    b.add_supported_connection_type("long-polling")
    b.add_version("1.0")
    assert b.build()[0].supported_connection_types == ["long-polling", "iframe"]


@pytest.mark.parametrize("version", ["1.0", "1.0beta", "10.0"])
def test_add_version_valid(version):
    b = HandshakeRequestBuilder()
    b.add_version(version)
    b.add_supported_connection_type("long-polling")
    assert b.build()[0].version == version


@pytest.mark.parametrize("version", [".0", "a.0", ""])
def test_add_version_invalid(version):
    b = HandshakeRequestBuilder()
    with pytest.raises(BadConnectionVersionError):
        b.add_version(version)


def test_minimum_version_included():
    b = HandshakeRequestBuilder()
    b.add_supported_connection_type("long-polling")
    b.add_version("1.0")
    b.add_minimum_version("0.9")
    assert b.build()[0].to_dict()["minimumVersion"] == "0.9"


def test_minimum_version_invalid():
    with pytest.raises(BadConnectionVersionError):
        HandshakeRequestBuilder().add_minimum_version("x")


def test_handshake_requires_connection_types():
    b = HandshakeRequestBuilder()
    b.add_version("1.0")
    with pytest.raises(NoSupportedConnectionTypesError):
        b.build()


def test_handshake_requires_version():
    b = HandshakeRequestBuilder()
    b.add_supported_connection_type("long-polling")
    with pytest.raises(NoVersionError):
        b.build()


def test_handshake_example():
    b = HandshakeRequestBuilder()
    b.add_supported_connection_type(CONNECTION_TYPE_LONG_POLLING)
    b.add_version("1.0")
    assert _encode(b.build()) == (
        '[{"channel":"/meta/handshake","version":"1.0",'
        '"supportedConnectionTypes":["long-polling"]}]'
    )


def test_connect_example():
    b = ConnectRequestBuilder()
    b.add_connection_type(CONNECTION_TYPE_LONG_POLLING)
    b.add_client_id(CLIENT_ID)
    assert _encode(b.build()) == (
        '[{"channel":"/meta/connect","clientId":"Un1q31d3nt1f13r",'
        '"connectionType":"long-polling"}]'
    )


def test_connect_invalid_type():
    with pytest.raises(BadConnectionTypeError):
        ConnectRequestBuilder().add_connection_type("carrier-pigeon")


def test_connect_missing_client_id():
    b = ConnectRequestBuilder()
    b.add_connection_type("long-polling")
    with pytest.raises(MissingClientIDError):
        b.build()


def test_connect_missing_connection_type():
    b = ConnectRequestBuilder()
    b.add_client_id(CLIENT_ID)
    with pytest.raises(MissingConnectionTypeError):
        b.build()


def test_subscribe_example():
    b = SubscribeRequestBuilder()
    b.add_subscription("/foo/**")
    b.add_subscription("/foo/**")
    b.add_subscription("/bar/foo")
    b.add_client_id(CLIENT_ID)
    assert _encode(b.build()) == (
        '[{"channel":"/meta/subscribe","clientId":"Un1q31d3nt1f13r","subscription":"/foo/**"},'
        '{"channel":"/meta/subscribe","clientId":"Un1q31d3nt1f13r","subscription":"/bar/foo"}]'
    )


def test_unsubscribe_example():
    b = UnsubscribeRequestBuilder()
    b.add_subscription("/foo/**")
    b.add_subscription("/foo/**")
    b.add_subscription("/bar/foo")
    b.add_client_id(CLIENT_ID)
    assert _encode(b.build()) == (
        '[{"channel":"/meta/unsubscribe","clientId":"Un1q31d3nt1f13r","subscription":"/foo/**"},'
        '{"channel":"/meta/unsubscribe","clientId":"Un1q31d3nt1f13r","subscription":"/bar/foo"}]'
    )


@pytest.mark.parametrize("builder_cls", [SubscribeRequestBuilder, UnsubscribeRequestBuilder])
def test_subscription_invalid_channel(builder_cls):
    with pytest.raises(InvalidChannelError):
        builder_cls().add_subscription("/foo/*/bar")


@pytest.mark.parametrize("builder_cls", [SubscribeRequestBuilder, UnsubscribeRequestBuilder])
def test_subscription_missing_client_id(builder_cls):
    b = builder_cls()
    b.add_subscription("/foo")
    with pytest.raises(MissingClientIDError):
        b.build()


@pytest.mark.parametrize("builder_cls", [SubscribeRequestBuilder, UnsubscribeRequestBuilder])
def test_subscription_empty(builder_cls):
    b = builder_cls()
    b.add_client_id(CLIENT_ID)
    with pytest.raises(EmptyCollectionError) as info:
        b.build()
    assert str(info.value) == "no subscriptions provided"


def test_disconnect_build():
    b = DisconnectRequestBuilder()
    b.add_client_id(CLIENT_ID)
    assert _encode(b.build()) == '[{"channel":"/meta/disconnect","clientId":"Un1q31d3nt1f13r"}]'


def test_disconnect_missing_client_id():
    with pytest.raises(MissingClientIDError):
        DisconnectRequestBuilder().build()